"""Fault taxonomy for the CHIP-8 machine.

The machine builds these and reports them instead of raising them, so a
running program is never stopped by a bad word or a broken call stack.
``LoadTooLarge`` is the only one a caller sees as a failed operation.
"""


class Chip8Error(Exception):
    """Base class for everything the machine can report."""

    def __init__(self, message, pc=None, opcode=None):
        super().__init__(message)
        self.pc = pc
        self.opcode = opcode


class LoadTooLarge(Chip8Error):
    def __init__(self, size, capacity):
        super().__init__(f"Program is too large: {size} bytes, capacity is {capacity}")
        self.size = size
        self.capacity = capacity


class StackOverflow(Chip8Error):
    def __init__(self, pc, opcode):
        super().__init__(f"{pc:04x} | OP 0x{opcode:04x} - Stack overflow", pc, opcode)


class StackUnderflow(Chip8Error):
    def __init__(self, pc, opcode):
        super().__init__(f"{pc:04x} | OP 0x{opcode:04x} - Stack underflow", pc, opcode)


class IllegalInstruction(Chip8Error):
    def __init__(self, pc, opcode):
        super().__init__(f"{pc:04x} | OP 0x{opcode:04x} - Illegal instruction", pc, opcode)
