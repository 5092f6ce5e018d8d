# pyglet host for the CHIP-8 machine.
# We subclass pyglet's Window (that'll handle graphics and keyboard handling)
# and override whatever def we need from there. The machine itself never
# touches pyglet.

import logging

import numpy as np
import pyglet
from pyglet.window import key

from .constants import HEIGHT, WIDTH

logger = logging.getLogger(__name__)

TIMER_HZ = 60

# map binding keys
keymap = {
    key._1: 0x1, key._2: 0x2, key._3: 0x3, key._4: 0xC,
    key.Q: 0x4, key.W: 0x5, key.E: 0x6, key.R: 0xD,
    key.A: 0x7, key.S: 0x8, key.D: 0x9, key.F: 0xE,
    key.Z: 0xA, key.X: 0x0, key.C: 0xB, key.V: 0xF,
}


class Chip8Window(pyglet.window.Window):

    def __init__(self, machine, cpu_hz=500, scale=10):
        self.machine = machine
        self.scale = scale
        window_width, window_height = WIDTH * scale, HEIGHT * scale
        super().__init__(
            width=window_width,
            height=window_height,
            caption="CHIP-8 Emulator",
            vsync=False
        )

        # Pre-allocated small framebuffer (64x32 RGBA), upscaled with numpy.repeat
        self._small_framebuf = np.zeros((HEIGHT, WIDTH, 4), dtype=np.uint8)
        self._small_framebuf[..., 3] = 255
        self.image = pyglet.image.ImageData(
            window_width,
            window_height,
            'RGBA',
            np.repeat(np.repeat(self._small_framebuf, scale, axis=0), scale, axis=1).tobytes()
        )

        # Performance tracking
        self._fps_counter = 0
        self._cps_counter = 0
        self._bench_time = pyglet.clock.get_default().time()

        # Labels for HUD
        self.fps_label = self._hud_label("FPS: 0", window_height - 15)
        self.cps_label = self._hud_label("Cycles/s: 0", window_height - 30)
        self.sound_label = self._hud_label("SOUND", window_height - 45)
        self.sound_on = False

        # Schedule the loops
        pyglet.clock.schedule_interval(self.tick, 1 / cpu_hz)
        pyglet.clock.schedule_interval(self.draw_frame, 1 / TIMER_HZ)
        pyglet.clock.schedule_interval(self._update_bench, 1.0)

    @staticmethod
    def _hud_label(text, y):
        return pyglet.text.Label(
            text,
            font_size=12,
            x=5,
            y=y,
            anchor_x='left',
            anchor_y='center',
            color=(255, 255, 255, 255)
        )

    # FPS / CPS
    def _update_bench(self, dt):
        now = pyglet.clock.get_default().time()
        elapsed = now - self._bench_time
        if elapsed >= 1.0:
            self.fps_label.text = f"FPS: {self._fps_counter / elapsed:.1f}"
            self.cps_label.text = f"Cycles/s: {self._cps_counter}"
            self._fps_counter = 0
            self._cps_counter = 0
            self._bench_time = now

    # cpu tick
    def tick(self, dt):
        self._cps_counter += 1
        sound_stopped = self.machine.step()
        if sound_stopped:
            logger.debug("Sound off")
        self.sound_on = self.machine.sound_active

    # draw loop
    def draw_frame(self, dt):
        self.dispatch_event('on_draw')

    def on_draw(self):
        self.clear()
        if self.machine.draw_flag:
            # pyglet's origin is bottom-left, the framebuffer's is top-left
            pixels = self.machine.vram.reshape(HEIGHT, WIDTH)[::-1] * 255
            self._small_framebuf[..., :3] = pixels[..., np.newaxis]
            scaled = np.repeat(np.repeat(self._small_framebuf, self.scale, axis=0), self.scale, axis=1)
            self.image.set_data('RGBA', self.width * 4, scaled.tobytes())
            self.machine.draw_flag = False
        self.image.blit(0, 0)

        self.fps_label.draw()
        self.cps_label.draw()
        if self.sound_on:
            self.sound_label.draw()
        self._fps_counter += 1

    # keyboard
    def on_key_press(self, symbol, modifiers):
        if symbol == key.ESCAPE:
            self.close()
        elif symbol == key.F1:
            root = logging.getLogger()
            root.setLevel(logging.INFO if root.level == logging.DEBUG else logging.DEBUG)
            logger.info(f"Debug tracing {'on' if root.level == logging.DEBUG else 'off'}")
        elif symbol in keymap:
            self.machine.keys[keymap[symbol]] = True

    def on_key_release(self, symbol, modifiers):
        if symbol in keymap:
            self.machine.keys[keymap[symbol]] = False
