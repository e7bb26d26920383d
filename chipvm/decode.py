"""CHIP-8 instruction decoding."""

from chex import dataclass


@dataclass(frozen=True)
class Instruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    kk: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)

    @property
    def nibbles(self) -> tuple[int, int, int, int]:
        return self.opcode, self.x, self.y, self.n

    def __str__(self) -> str:
        return f"{self.raw:04X}"


def decode(instruction: int) -> Instruction:
    """Decode 16-bit instruction into components."""
    instruction = int(instruction) & 0xFFFF
    return Instruction(
        raw=instruction,
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        kk=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )


def decode_bytes(high: int, low: int) -> Instruction:
    """Decode an instruction from its two big-endian bytes."""
    return decode((int(high) << 8) | int(low))
