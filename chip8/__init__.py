from .faults import Chip8Error, IllegalInstruction, LoadTooLarge, StackOverflow, StackUnderflow
from .machine import Machine

__all__ = [
    "Machine",
    "Chip8Error",
    "LoadTooLarge",
    "StackOverflow",
    "StackUnderflow",
    "IllegalInstruction",
]
