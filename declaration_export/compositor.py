"""
compositor.py - Place the captured bitmap on the final page surface.

The surface is always at least 85% of a page tall, is fully painted with the
background before the bitmap goes on, and never carries alpha.
"""

import logging

import numpy as np
import cv2

from .render import RasterBitmap
from .settings import PageLayout

logger = logging.getLogger(__name__)

# Output surface is always 2x the logical page
SURFACE_SCALE = 2


def content_height(bitmap_height: int, layout: PageLayout) -> float:
    """Logical content height, clipped to the page minus the top margin."""
    return min(bitmap_height / layout.scale, layout.page_height - layout.top_clip_margin)


def final_height(bitmap_height: int, layout: PageLayout) -> float:
    """Logical height of the output: content + bottom pad, never below the minimum."""
    return max(
        content_height(bitmap_height, layout) + layout.bottom_pad,
        layout.page_height * layout.min_height_fraction
    )


def to_rgb(pixels: np.ndarray, background: tuple) -> np.ndarray:
    """
    Normalise a bitmap to 3-channel RGB.

    Grayscale is expanded; alpha is blended over the background rather than
    dropped, so transparent pixels come out as background.
    """
    if pixels.ndim == 2:
        return cv2.cvtColor(pixels, cv2.COLOR_GRAY2RGB)

    channels = pixels.shape[2]
    if channels == 3:
        return pixels
    if channels == 1:
        return cv2.cvtColor(np.ascontiguousarray(pixels[:, :, 0]), cv2.COLOR_GRAY2RGB)
    if channels == 4:
        rgb = pixels[:, :, :3].astype(np.float32)
        alpha = pixels[:, :, 3:4].astype(np.float32) / 255.0
        bg = np.array(background, dtype=np.float32)
        blended = rgb * alpha + bg * (1.0 - alpha)
        return np.clip(np.rint(blended), 0, 255).astype(np.uint8)

    raise ValueError(f"Unsupported bitmap shape: {pixels.shape}")


def compose(bitmap: RasterBitmap, layout: PageLayout = PageLayout()) -> np.ndarray:
    """
    Build the final surface for a captured bitmap.

    Args:
        bitmap: Captured content
        layout: Page geometry and background

    Returns:
        (int(final_height * 2), page_width * 2, 3) uint8 RGB array
    """
    height = final_height(bitmap.height, layout)
    surface_h = int(height * SURFACE_SCALE)
    surface_w = int(layout.page_width * SURFACE_SCALE)
    background = layout.background_rgb

    surface = np.empty((surface_h, surface_w, 3), dtype=np.uint8)
    surface[:, :] = background

    pixels = to_rgb(bitmap.pixels, background)
    draw_h = min(surface_h, pixels.shape[0])
    draw_w = min(surface_w, pixels.shape[1])
    surface[:draw_h, :draw_w] = pixels[:draw_h, :draw_w]

    logger.debug(
        f"Composite: {surface_w}x{surface_h} | "
        f"bitmap {bitmap.width}x{bitmap.height} | final height {height:.1f}"
    )

    return surface
