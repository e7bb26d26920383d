"""CHIP-8 opcode rule table.

Each opcode is declared as data: an ordered list of nibble matchers, where a
matcher is either a literal nibble or a named operand placeholder. A rule
matches an instruction when every literal equals the nibble at its position.
The table rejects, when it is built, any two rules that could match the same
instruction, so lookup order never decides between candidates.
"""

import enum
from typing import Iterable, Optional, Sequence, Union

from chex import dataclass

from chipvm.decode import Instruction


class Field(enum.Enum):
    """Operand placeholder and the number of nibbles it spans."""
    X = "X"
    Y = "Y"
    N = "N"
    KK = "KK"
    NNN = "NNN"

    @property
    def width(self) -> int:
        return len(self.value) if self in (Field.KK, Field.NNN) else 1


X, Y, N, KK, NNN = Field.X, Field.Y, Field.N, Field.KK, Field.NNN

Matcher = Union[int, Field]


class OpcodeTag(enum.Enum):
    CLS = "CLS"
    RET = "RET"
    JP = "JP"
    CALL = "CALL"
    SE_VX_KK = "SE_VX_KK"
    SNE_VX_KK = "SNE_VX_KK"
    SE_VX_VY = "SE_VX_VY"
    LD_VX_KK = "LD_VX_KK"
    ADD_VX_KK = "ADD_VX_KK"
    LD_VX_VY = "LD_VX_VY"
    OR = "OR"
    AND = "AND"
    XOR = "XOR"
    ADD_VX_VY = "ADD_VX_VY"
    SUB = "SUB"
    SHR = "SHR"
    SUBN = "SUBN"
    SHL = "SHL"
    SNE_VX_VY = "SNE_VX_VY"
    LD_I = "LD_I"
    JP_V0 = "JP_V0"
    RND = "RND"
    DRW = "DRW"
    SKP = "SKP"
    SKNP = "SKNP"
    LD_VX_DT = "LD_VX_DT"
    LD_VX_K = "LD_VX_K"
    LD_DT_VX = "LD_DT_VX"
    LD_ST_VX = "LD_ST_VX"
    ADD_I_VX = "ADD_I_VX"
    LD_F_VX = "LD_F_VX"
    LD_B_VX = "LD_B_VX"
    LD_I_VX = "LD_I_VX"
    LD_VX_I = "LD_VX_I"


@dataclass(frozen=True)
class Operation:
    """A single opcode rule: nibble matchers, the tag they select and a mnemonic template."""
    pattern: tuple
    tag: OpcodeTag
    mnemonic: str

    @property
    def width(self) -> int:
        return sum(1 if isinstance(m, int) else m.width for m in self.pattern)

    def literals(self) -> tuple[Optional[int], ...]:
        """Per-nibble literal value, or None where a placeholder sits."""
        positions = []
        for matcher in self.pattern:
            if isinstance(matcher, Field):
                positions.extend([None] * matcher.width)
            else:
                positions.append(matcher)
        return tuple(positions)

    def template(self) -> int:
        """Instruction word matching this rule with every operand zeroed."""
        word = 0
        for nibble in self.literals():
            word = (word << 4) | (nibble or 0)
        return word

    def matches(self, instruction: Instruction) -> bool:
        nibbles = instruction.nibbles
        i = 0
        for matcher in self.pattern:
            if isinstance(matcher, Field):
                i += matcher.width
                continue
            if nibbles[i] != matcher:
                return False
            i += 1
        return True

    def overlaps(self, other: "Operation") -> bool:
        """True if some instruction could match both rules."""
        for mine, theirs in zip(self.literals(), other.literals()):
            if mine is not None and theirs is not None and mine != theirs:
                return False
        return True


def op(pattern: Sequence[Matcher], tag: OpcodeTag, mnemonic: str) -> Operation:
    return Operation(pattern=tuple(pattern), tag=tag, mnemonic=mnemonic)


CANONICAL_OPERATIONS = (
    op((0x0, 0x0, 0xE, 0x0), OpcodeTag.CLS, "CLS"),
    op((0x0, 0x0, 0xE, 0xE), OpcodeTag.RET, "RET"),
    op((0x1, NNN), OpcodeTag.JP, "JP 0x{nnn:03X}"),
    op((0x2, NNN), OpcodeTag.CALL, "CALL 0x{nnn:03X}"),
    op((0x3, X, KK), OpcodeTag.SE_VX_KK, "SE V{x:X}, 0x{kk:02X}"),
    op((0x4, X, KK), OpcodeTag.SNE_VX_KK, "SNE V{x:X}, 0x{kk:02X}"),
    op((0x5, X, Y, 0x0), OpcodeTag.SE_VX_VY, "SE V{x:X}, V{y:X}"),
    op((0x6, X, KK), OpcodeTag.LD_VX_KK, "LD V{x:X}, 0x{kk:02X}"),
    op((0x7, X, KK), OpcodeTag.ADD_VX_KK, "ADD V{x:X}, 0x{kk:02X}"),
    op((0x8, X, Y, 0x0), OpcodeTag.LD_VX_VY, "LD V{x:X}, V{y:X}"),
    op((0x8, X, Y, 0x1), OpcodeTag.OR, "OR V{x:X}, V{y:X}"),
    op((0x8, X, Y, 0x2), OpcodeTag.AND, "AND V{x:X}, V{y:X}"),
    op((0x8, X, Y, 0x3), OpcodeTag.XOR, "XOR V{x:X}, V{y:X}"),
    op((0x8, X, Y, 0x4), OpcodeTag.ADD_VX_VY, "ADD V{x:X}, V{y:X}"),
    op((0x8, X, Y, 0x5), OpcodeTag.SUB, "SUB V{x:X}, V{y:X}"),
    op((0x8, X, Y, 0x6), OpcodeTag.SHR, "SHR V{x:X}"),
    op((0x8, X, Y, 0x7), OpcodeTag.SUBN, "SUBN V{x:X}, V{y:X}"),
    op((0x8, X, Y, 0xE), OpcodeTag.SHL, "SHL V{x:X}"),
    op((0x9, X, Y, 0x0), OpcodeTag.SNE_VX_VY, "SNE V{x:X}, V{y:X}"),
    op((0xA, NNN), OpcodeTag.LD_I, "LD I, 0x{nnn:03X}"),
    op((0xB, NNN), OpcodeTag.JP_V0, "JP V0, 0x{nnn:03X}"),
    op((0xC, X, KK), OpcodeTag.RND, "RND V{x:X}, 0x{kk:02X}"),
    op((0xD, X, Y, N), OpcodeTag.DRW, "DRW V{x:X}, V{y:X}, {n}"),
    op((0xE, X, 0x9, 0xE), OpcodeTag.SKP, "SKP V{x:X}"),
    op((0xE, X, 0xA, 0x1), OpcodeTag.SKNP, "SKNP V{x:X}"),
    op((0xF, X, 0x0, 0x7), OpcodeTag.LD_VX_DT, "LD V{x:X}, DT"),
    op((0xF, X, 0x0, 0xA), OpcodeTag.LD_VX_K, "LD V{x:X}, K"),
    op((0xF, X, 0x1, 0x5), OpcodeTag.LD_DT_VX, "LD DT, V{x:X}"),
    op((0xF, X, 0x1, 0x8), OpcodeTag.LD_ST_VX, "LD ST, V{x:X}"),
    op((0xF, X, 0x1, 0xE), OpcodeTag.ADD_I_VX, "ADD I, V{x:X}"),
    op((0xF, X, 0x2, 0x9), OpcodeTag.LD_F_VX, "LD F, V{x:X}"),
    op((0xF, X, 0x3, 0x3), OpcodeTag.LD_B_VX, "LD B, V{x:X}"),
    op((0xF, X, 0x5, 0x5), OpcodeTag.LD_I_VX, "LD [I], V{x:X}"),
    op((0xF, X, 0x6, 0x5), OpcodeTag.LD_VX_I, "LD V{x:X}, [I]"),
)


class OpcodeTable:
    """Ordered opcode rules with a one-level lookup keyed on the leading nibble."""

    def __init__(self, operations: Iterable[Operation] = CANONICAL_OPERATIONS):
        self.operations = tuple(operations)
        for operation in self.operations:
            self._validate(operation)
        for i, first in enumerate(self.operations):
            for second in self.operations[i + 1:]:
                if first.overlaps(second):
                    raise ValueError(
                        f"Ambiguous opcode rules: {first.mnemonic!r} and {second.mnemonic!r} "
                        f"can match the same instruction"
                    )

        # Rules whose first matcher is a placeholder are candidates for every nibble.
        self._buckets = {nibble: [] for nibble in range(16)}
        for operation in self.operations:
            leading = operation.literals()[0]
            targets = range(16) if leading is None else (leading,)
            for nibble in targets:
                self._buckets[nibble].append(operation)

    @staticmethod
    def _validate(operation: Operation):
        if operation.width != 4:
            raise ValueError(f"Rule {operation.mnemonic!r} spans {operation.width} nibbles, expected 4")
        for matcher in operation.pattern:
            if isinstance(matcher, Field):
                continue
            if not isinstance(matcher, int) or not 0 <= matcher <= 0xF:
                raise ValueError(f"Rule {operation.mnemonic!r} has invalid literal nibble {matcher!r}")

    def lookup(self, instruction: Instruction) -> Optional[Operation]:
        """Return the rule matching ``instruction``, or None for an illegal opcode."""
        for operation in self._buckets[instruction.opcode]:
            if operation.matches(instruction):
                return operation
        return None

    def classify(self, instruction: Instruction) -> Optional[OpcodeTag]:
        operation = self.lookup(instruction)
        return None if operation is None else operation.tag

    def disassemble(self, instruction: Instruction) -> str:
        operation = self.lookup(instruction)
        if operation is None:
            return f"??? 0x{instruction.raw:04X}"
        return operation.mnemonic.format(
            x=instruction.x, y=instruction.y, n=instruction.n, kk=instruction.kk, nnn=instruction.nnn
        )

    def __len__(self) -> int:
        return len(self.operations)


DEFAULT_TABLE = OpcodeTable()
