"""Host-side rendering of the (64, 32) display planes."""

from typing import Tuple

import jax.numpy as jnp
import numpy as np

Color = Tuple[int, int, int]

# name -> (on, off)
COLOR_SCHEMES = {
    "classic": ((0, 255, 0), (0, 0, 0)),
    "amber": ((255, 176, 0), (0, 0, 0)),
    "white": ((255, 255, 255), (0, 0, 0)),
    "blue": ((0, 255, 255), (0, 0, 64)),
    "retro": ((255, 255, 0), (64, 0, 64)),
}


def _rows(display: jnp.ndarray) -> np.ndarray:
    """Host copy of a display plane laid out row-major, shape (height, width)."""
    return np.asarray(display, dtype=np.bool_).T


def display_to_rgb(
    display: jnp.ndarray,
    scale: int = 8,
    on_color: Color = COLOR_SCHEMES["classic"][0],
    off_color: Color = COLOR_SCHEMES["classic"][1],
) -> np.ndarray:
    """Colour a display plane and upscale it by ``scale`` in both directions.

    Args:
        display: Boolean plane of shape (64, 32), indexed [x, y]
        scale: Output pixels per display pixel
        on_color: RGB for lit pixels
        off_color: RGB for dark pixels

    Returns:
        uint8 array of shape (32 * scale, 64 * scale, 3)
    """
    palette = np.array([off_color, on_color], dtype=np.uint8)
    frame = palette[_rows(display).astype(np.intp)]
    if scale > 1:
        frame = frame.repeat(scale, axis=0).repeat(scale, axis=1)
    return frame


def display_to_text(display: jnp.ndarray, on: str = "#", off: str = ".") -> str:
    """One character per pixel, one line per display row."""
    return "\n".join("".join(on if lit else off for lit in row) for row in _rows(display))


def create_color_scheme(scheme: str = "classic") -> Tuple[Color, Color]:
    """Look up an (on_color, off_color) pair by name."""
    if scheme not in COLOR_SCHEMES:
        raise ValueError(f"Unknown color scheme '{scheme}'. Available: {list(COLOR_SCHEMES)}")
    return COLOR_SCHEMES[scheme]
