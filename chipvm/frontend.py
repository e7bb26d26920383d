"""pygame window presenting the display and feeding the keypad."""

import numpy as np
import pygame

from chipvm.rendering import display_to_rgb, create_color_scheme
from chipvm.runner import Interpreter

# CHIP-8 key index -> host key, laid out as the 4x4 block 1234/qwer/asdf/zxcv
KEY_LAYOUT = (
    pygame.K_x, pygame.K_1, pygame.K_2, pygame.K_3,
    pygame.K_q, pygame.K_w, pygame.K_e, pygame.K_a,
    pygame.K_s, pygame.K_d, pygame.K_z, pygame.K_c,
    pygame.K_4, pygame.K_r, pygame.K_f, pygame.K_v,
)
KEY_MAP = {host_key: index for index, host_key in enumerate(KEY_LAYOUT)}


def run_window(interpreter: Interpreter, scale: int = 8, color_scheme: str = "classic", fps: int = 60):
    """Present frames and capture keys until the window closes or the interpreter stops."""
    on_color, off_color = create_color_scheme(color_scheme)
    display = interpreter.display
    keypad = interpreter.keypad

    pygame.init()
    screen = pygame.display.set_mode((display.width * scale, display.height * scale))
    pygame.display.set_caption("chipvm")
    clock = pygame.time.Clock()

    interpreter.start()
    try:
        while not interpreter.stop_event.is_set():
            clock.tick(fps)

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    interpreter.stop()
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        interpreter.stop()
                    elif event.key in KEY_MAP:
                        keypad.record_press(KEY_MAP[event.key])

            # Held keys keep refreshing their press time so they stay down.
            held = pygame.key.get_pressed()
            for host_key, index in KEY_MAP.items():
                if held[host_key]:
                    keypad.record_press(index)

            if display.present():
                frame = display_to_rgb(display.snapshot(), scale, on_color, off_color)
                pygame.surfarray.blit_array(screen, np.transpose(frame, (1, 0, 2)))
                pygame.display.flip()
    finally:
        interpreter.stop()
        pygame.quit()
        interpreter.join()
