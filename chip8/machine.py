# CHIP8 Virtual Machine:
# Input - the host stores key input states in `keys`, we check these per cycle.
# Output - 64x32 framebuffer (pixels are either in the on or off state (0 || 1)) & two timers.
# CPU - Cowgod's CHIP8 Technical reference http://devernay.free.fr/hacks/chip8/C8TECH10.HTM#0.0
# Memory - 4096 bytes which includes: the interpreter area, fonts, and the loaded program.
#----------------------------------------------------------------------------------------------
# Registers, memory, stack and framebuffer are fixed-size numpy arrays allocated once.
# Arithmetic happens on python ints and is masked before it is stored back.
# The machine never opens a window, reads a file or plays a sound; the host does that.

import logging
import random
from collections import deque

import numpy as np

from .constants import (
    ADDRESS_MASK, FONT_BEGIN, FONT_END, FONTSET, GLYPH_BYTES, HEIGHT, KEY_COUNT,
    MEMORY_SIZE, PROGRAM_BEGIN, PROGRAM_SIZE, REGISTER_COUNT, STACK_SIZE, WIDTH,
)
from .faults import IllegalInstruction, LoadTooLarge, StackOverflow, StackUnderflow

logger = logging.getLogger(__name__)

FAULT_HISTORY = 64


class Machine:
    """One CHIP-8 machine: memory, registers, stack, timers, keys and framebuffer.

    The host drives it with ``reset``, ``load`` and ``step``. Between steps it
    writes ``keys`` and, whenever ``draw_flag`` is set, renders ``vram`` and
    clears the flag.
    """

    def __init__(self, seed=None):
        self.memory = np.zeros(MEMORY_SIZE, dtype=np.uint8)
        self.vram = np.zeros(WIDTH * HEIGHT, dtype=np.uint8)
        self.V = np.zeros(REGISTER_COUNT, dtype=np.uint8)
        self.stack = np.zeros(STACK_SIZE, dtype=np.uint16)
        self.keys = np.zeros(KEY_COUNT, dtype=bool)
        self.faults = deque(maxlen=FAULT_HISTORY)

        # dispatch table, most specific mask first
        self.opcodes = [
            (0xFFFF, 0x00E0, self.op_CLS),
            (0xFFFF, 0x00EE, self.op_RET),
            (0xF000, 0x0000, self.op_SYS),

            (0xF000, 0x1000, self.op_JP),
            (0xF000, 0x2000, self.op_CALL),
            (0xF000, 0x3000, self.op_SE_Vx_kk),
            (0xF000, 0x4000, self.op_SNE_Vx_kk),
            (0xF00F, 0x5000, self.op_SE_Vx_Vy),
            (0xF000, 0x6000, self.op_LD_Vx_kk),
            (0xF000, 0x7000, self.op_ADD_Vx_kk),

            (0xF00F, 0x8000, self.op_LD_Vx_Vy),
            (0xF00F, 0x8001, self.op_OR),
            (0xF00F, 0x8002, self.op_AND),
            (0xF00F, 0x8003, self.op_XOR),
            (0xF00F, 0x8004, self.op_ADD),
            (0xF00F, 0x8005, self.op_SUB),
            (0xF00F, 0x8006, self.op_SHR),
            (0xF00F, 0x8007, self.op_SUBN),
            (0xF00F, 0x800E, self.op_SHL),

            (0xF00F, 0x9000, self.op_SNE_Vx_Vy),
            (0xF000, 0xA000, self.op_LD_I),
            (0xF000, 0xB000, self.op_JP_V0),
            (0xF000, 0xC000, self.op_RND),
            (0xF000, 0xD000, self.op_DRW),

            (0xF0FF, 0xE09E, self.op_SKP),
            (0xF0FF, 0xE0A1, self.op_SKNP),

            (0xF0FF, 0xF007, self.op_LD_Vx_DT),
            (0xF0FF, 0xF00A, self.op_WAITKEY),
            (0xF0FF, 0xF015, self.op_LD_DT_Vx),
            (0xF0FF, 0xF018, self.op_LD_ST_Vx),
            (0xF0FF, 0xF01E, self.op_ADD_I_Vx),
            (0xF0FF, 0xF029, self.op_FONT),
            (0xF0FF, 0xF033, self.op_BCD),
            (0xF0FF, 0xF055, self.op_STORE),
            (0xF0FF, 0xF065, self.op_LOAD),
        ]

        self.reset(seed)

    # lifecycle
    def reset(self, seed=None):
        """Zero all state, install the font table and reseed the RNG."""
        self.memory.fill(0)
        self.vram.fill(0)
        self.V.fill(0)
        self.stack.fill(0)
        self.keys.fill(False)
        self.faults.clear()

        self.pc = PROGRAM_BEGIN
        self.sp = 0
        self.I = 0
        self.delay = 0
        self.sound = 0
        self.draw_flag = False
        self.waiting_for_key = None
        self.opcode = 0
        self.opcode_pc = PROGRAM_BEGIN

        self.memory[FONT_BEGIN:FONT_END] = FONTSET
        self.rng = random.Random(seed)

    def load(self, image):
        """Copy a program image into memory at 0x200. Returns False if it does not fit."""
        image = bytes(memoryview(image))
        if len(image) > PROGRAM_SIZE:
            fault = LoadTooLarge(len(image), PROGRAM_SIZE)
            logger.error(str(fault))
            self.faults.append(fault)
            return False
        self.memory[PROGRAM_BEGIN:PROGRAM_BEGIN + len(image)] = np.frombuffer(image, dtype=np.uint8)
        logger.info(f"Program length {len(image)} bytes loaded at 0x{PROGRAM_BEGIN:04x}")
        return True

    @property
    def sound_active(self):
        return self.sound > 0

    # cpu cycle
    def step(self):
        """Run one fetch-decode-execute-timer cycle.

        Returns True when the sound timer just reached zero on this cycle.
        """
        if self.waiting_for_key is not None:
            self._poll_key()
            return self._update_timers()

        pc = self.pc
        opcode = (int(self.memory[pc]) << 8) | int(self.memory[(pc + 1) & ADDRESS_MASK])
        self.opcode = opcode
        self.opcode_pc = pc
        self.pc = (pc + 2) & ADDRESS_MASK
        logger.debug(f"{pc:04x} | OP 0x{opcode:04x}")

        for mask, pattern, handler in self.opcodes:
            if (opcode & mask) == pattern:
                handler(opcode)
                break
        else:
            self._report(IllegalInstruction(pc, opcode))

        return self._update_timers()

    def _update_timers(self):
        if self.delay > 0:
            self.delay -= 1
        if self.sound > 0:
            self.sound -= 1
            if self.sound == 0:
                logger.debug("Sound timer expired")
                return True
        return False

    def _report(self, fault):
        # a stack fault re-runs every cycle, only its first occurrence is recorded
        last = self.faults[-1] if self.faults else None
        if type(last) is type(fault) and last.pc == fault.pc:
            logger.debug(str(fault))
            return
        logger.warning(str(fault))
        self.faults.append(fault)

    def _poll_key(self):
        pressed = np.flatnonzero(self.keys)
        if len(pressed) == 0:
            return
        self.V[self.waiting_for_key] = int(pressed[0])
        self.waiting_for_key = None
        self.pc = (self.opcode_pc + 2) & ADDRESS_MASK

    def _skip(self):
        self.pc = (self.pc + 2) & ADDRESS_MASK

    # opcode handlers
    def op_CLS(self, opcode):
        self.vram.fill(0)
        self.draw_flag = True

    def op_RET(self, opcode):
        if self.sp == 0:
            self.pc = self.opcode_pc
            self._report(StackUnderflow(self.opcode_pc, opcode))
            return
        self.sp -= 1
        self.pc = (int(self.stack[self.sp]) + 2) & ADDRESS_MASK

    def op_SYS(self, opcode):
        # 0nnn machine code routine, treated as a jump
        self.pc = opcode & 0x0FFF

    def op_JP(self, opcode):
        self.pc = opcode & 0x0FFF

    def op_CALL(self, opcode):
        if self.sp >= STACK_SIZE:
            self.pc = self.opcode_pc
            self._report(StackOverflow(self.opcode_pc, opcode))
            return
        self.stack[self.sp] = self.opcode_pc
        self.sp += 1
        self.pc = opcode & 0x0FFF

    def op_SE_Vx_kk(self, opcode):
        x = (opcode >> 8) & 0xF
        kk = opcode & 0xFF
        if self.V[x] == kk:
            self._skip()

    def op_SNE_Vx_kk(self, opcode):
        x = (opcode >> 8) & 0xF
        kk = opcode & 0xFF
        if self.V[x] != kk:
            self._skip()

    def op_SE_Vx_Vy(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        if self.V[x] == self.V[y]:
            self._skip()

    def op_LD_Vx_kk(self, opcode):
        x = (opcode >> 8) & 0xF
        self.V[x] = opcode & 0xFF

    def op_ADD_Vx_kk(self, opcode):
        x = (opcode >> 8) & 0xF
        kk = opcode & 0xFF
        self.V[x] = (int(self.V[x]) + kk) & 0xFF

    def op_LD_Vx_Vy(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        self.V[x] = self.V[y]

    def op_OR(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        self.V[x] |= self.V[y]

    def op_AND(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        self.V[x] &= self.V[y]

    def op_XOR(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        self.V[x] ^= self.V[y]

    # VF is written last so that x == 0xF still ends up holding the flag
    def op_ADD(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        total = int(self.V[x]) + int(self.V[y])
        self.V[x] = total & 0xFF
        self.V[0xF] = 1 if total > 0xFF else 0

    def op_SUB(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        vx, vy = int(self.V[x]), int(self.V[y])
        self.V[x] = (vx - vy) & 0xFF
        self.V[0xF] = 0 if vy > vx else 1

    def op_SHR(self, opcode):
        x = (opcode >> 8) & 0xF
        vx = int(self.V[x])
        self.V[x] = vx >> 1
        self.V[0xF] = vx & 1

    def op_SUBN(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        vx, vy = int(self.V[x]), int(self.V[y])
        self.V[x] = (vy - vx) & 0xFF
        self.V[0xF] = 0 if vx > vy else 1

    def op_SHL(self, opcode):
        x = (opcode >> 8) & 0xF
        vx = int(self.V[x])
        self.V[x] = (vx << 1) & 0xFF
        self.V[0xF] = (vx >> 7) & 1

    def op_SNE_Vx_Vy(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        if self.V[x] != self.V[y]:
            self._skip()

    def op_LD_I(self, opcode):
        self.I = opcode & 0x0FFF

    def op_JP_V0(self, opcode):
        self.pc = ((opcode & 0x0FFF) + int(self.V[0])) & ADDRESS_MASK

    def op_RND(self, opcode):
        x = (opcode >> 8) & 0xF
        kk = opcode & 0xFF
        self.V[x] = self.rng.randrange(256) & kk

    def op_DRW(self, opcode):
        """XOR-draw an 8-pixel-wide, n-row sprite from memory[I] at (Vx, Vy).

        The origin and every pixel wrap around the screen edges. VF is set
        when a lit pixel gets turned off.
        """
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        n = opcode & 0xF
        px = int(self.V[x]) % WIDTH
        py = int(self.V[y]) % HEIGHT
        collision = 0
        for row in range(n):
            sprite = int(self.memory[(self.I + row) & ADDRESS_MASK])
            if sprite == 0:
                continue
            base = ((py + row) % HEIGHT) * WIDTH
            for bit in range(8):
                if sprite & (0x80 >> bit):
                    index = base + (px + bit) % WIDTH
                    if self.vram[index] == 1:
                        collision = 1
                    self.vram[index] ^= 1
        self.V[0xF] = collision
        self.draw_flag = True

    def op_SKP(self, opcode):
        x = (opcode >> 8) & 0xF
        if self.keys[int(self.V[x]) & 0xF]:
            self._skip()

    def op_SKNP(self, opcode):
        x = (opcode >> 8) & 0xF
        if not self.keys[int(self.V[x]) & 0xF]:
            self._skip()

    def op_LD_Vx_DT(self, opcode):
        x = (opcode >> 8) & 0xF
        self.V[x] = self.delay

    def op_WAITKEY(self, opcode):
        # stall on this instruction until the host reports a key down
        self.waiting_for_key = (opcode >> 8) & 0xF
        self.pc = self.opcode_pc
        self._poll_key()

    def op_LD_DT_Vx(self, opcode):
        x = (opcode >> 8) & 0xF
        self.delay = int(self.V[x])

    def op_LD_ST_Vx(self, opcode):
        x = (opcode >> 8) & 0xF
        self.sound = int(self.V[x])

    def op_ADD_I_Vx(self, opcode):
        x = (opcode >> 8) & 0xF
        total = self.I + int(self.V[x])
        self.I = total & 0xFFFF
        self.V[0xF] = 1 if total > 0xFFFF else 0

    def op_FONT(self, opcode):
        x = (opcode >> 8) & 0xF
        self.I = FONT_BEGIN + int(self.V[x]) * GLYPH_BYTES

    def op_BCD(self, opcode):
        x = (opcode >> 8) & 0xF
        v = int(self.V[x])
        self.memory[self.I & ADDRESS_MASK] = v // 100
        self.memory[(self.I + 1) & ADDRESS_MASK] = (v // 10) % 10
        self.memory[(self.I + 2) & ADDRESS_MASK] = v % 10

    def op_STORE(self, opcode):
        x = (opcode >> 8) & 0xF
        for i in range(x + 1):
            self.memory[(self.I + i) & ADDRESS_MASK] = self.V[i]

    def op_LOAD(self, opcode):
        x = (opcode >> 8) & 0xF
        for i in range(x + 1):
            self.V[i] = self.memory[(self.I + i) & ADDRESS_MASK]
