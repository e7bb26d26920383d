"""CHIP-8 machine constants."""

MEMORY_SIZE = 4096
ADDRESS_MASK = 0xFFF
INDEX_MASK = 0xFFFF

PROGRAM_START = 0x200
RESERVED_END = PROGRAM_START
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START

NUM_REGISTERS = 16
FLAG_REGISTER = 0xF
STACK_SIZE = 16
NUM_KEYS = 16

SCREEN_WIDTH = 64
SCREEN_HEIGHT = 32
SPRITE_WIDTH = 8
MAX_SPRITE_HEIGHT = 15

TIMER_HZ = 60
DEBOUNCE_WINDOW = 0.1  # seconds

FONT_START = 0x050
FONT_CHAR_SIZE = 5
FONT_DATA = [
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
]

__all__ = [
    "MEMORY_SIZE",
    "ADDRESS_MASK",
    "INDEX_MASK",
    "PROGRAM_START",
    "RESERVED_END",
    "MAX_PROGRAM_SIZE",
    "NUM_REGISTERS",
    "FLAG_REGISTER",
    "STACK_SIZE",
    "NUM_KEYS",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "SPRITE_WIDTH",
    "MAX_SPRITE_HEIGHT",
    "TIMER_HZ",
    "DEBOUNCE_WINDOW",
    "FONT_START",
    "FONT_CHAR_SIZE",
    "FONT_DATA",
]
