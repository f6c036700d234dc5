"""Display read-out helpers for hosts."""

import jax.numpy as jnp
import numpy as np
from PIL import Image


def display_intensity(display: jnp.ndarray, on_value: int = 255) -> np.ndarray:
    """Convert the (64, 32) boolean display to a row-major (32, 64) intensity grid."""
    pixels = np.asarray(display, dtype=np.bool_).T
    return np.where(pixels, on_value, 0).astype(np.uint8)


def save_frame(display: jnp.ndarray, filename: str, scale: int = 8) -> None:
    """Save the display as a grayscale image, format picked from the extension.

    Args:
        display: Boolean array of shape (64, 32)
        filename: Output path
        scale: Size in image pixels of one display cell
    """
    frame = display_intensity(display)
    if scale > 1:
        frame = np.repeat(np.repeat(frame, scale, axis=0), scale, axis=1)
    Image.fromarray(frame).save(filename)
