# Memory - 4096 bytes which includes: the interpreter area, fonts, and the loaded program.
MEMORY_SIZE = 4096
ADDRESS_MASK = 0x0FFF

FONT_BEGIN = 0x050
FONT_END = 0x0A0
PROGRAM_BEGIN = 0x200
PROGRAM_END = 0xFFF
PROGRAM_SIZE = PROGRAM_END + 1 - PROGRAM_BEGIN  # 0xE00

REGISTER_COUNT = 16
STACK_SIZE = 16
KEY_COUNT = 16

# Output - 64x32 display, one byte per pixel (0 || 1), row-major
WIDTH, HEIGHT = 64, 32

GLYPH_BYTES = 5

# set fonts (binary pixel patterns)
FONTSET = [
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
    0xF0, 0x80, 0xF0, 0x80, 0x80   # F
]  # notice 80 bytes
