"""
render.py - Off-screen layout and rasterization using PyMuPDF.

The render target is a throwaway in-memory document: one page of fixed
logical width (1 page unit = 1 logical pixel), filled with the background
color, with the markup laid out inside the padding. It is never attached to
anything visible and is closed as soon as the bitmap has been read back.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Protocol, Tuple

import numpy as np
try:
    import fitz  # pip install pymupdf
except ImportError:
    import pymupdf as fitz  # apt install python3-pymupdf

from .errors import ContentUnavailable, RenderTargetBusy
from .settings import PageLayout
from .template import DOCUMENT_CSS

logger = logging.getLogger(__name__)

# Scratch page height, in multiples of the logical page height. Content
# taller than this is cut off.
SCRATCH_PAGES = 3


@dataclass
class RasterBitmap:
    """Pixels captured from a render target."""
    pixels: np.ndarray  # (H, W, 3) uint8, RGB
    scale: float

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]


@dataclass
class RenderTarget:
    """A laid-out page plus the extent of the content container."""
    page: "fitz.Page"
    width: float
    height: float

    @property
    def clip(self) -> "fitz.Rect":
        return fitz.Rect(0, 0, self.width, self.height)


class Renderer(Protocol):
    """Anything that can turn markup into a bitmap."""

    def render(self, markup: str, layout: PageLayout) -> RasterBitmap:
        ...


def _unit_rgb(rgb: Tuple[int, int, int]) -> Tuple[float, float, float]:
    return tuple(c / 255.0 for c in rgb)


@contextmanager
def open_render_target(
    markup: Optional[str],
    layout: PageLayout = PageLayout(),
    css: Optional[str] = None
) -> Iterator[RenderTarget]:
    """
    Lay markup out on a detached page and yield it.

    Args:
        markup: HTML fragment with the record already interpolated
        layout: Page geometry and background
        css: Optional stylesheet applied to the markup

    Raises:
        ContentUnavailable: markup is missing or blank. Nothing is allocated.
    """
    if markup is None or not markup.strip():
        raise ContentUnavailable("Document content is not available")

    doc = fitz.open()
    try:
        width = layout.page_width
        scratch_height = layout.page_height * SCRATCH_PAGES
        page = doc.new_page(width=width, height=scratch_height)

        # Background under everything, so no pixel is left transparent
        page.draw_rect(
            page.rect,
            color=None,
            fill=_unit_rgb(layout.background_rgb),
            width=0
        )

        pad = layout.padding
        box = fitz.Rect(pad, pad, width - pad, scratch_height - pad)
        spare_height, _ = page.insert_htmlbox(box, markup, css=css, scale_low=1)

        if spare_height < 0:
            logger.warning(
                f"Content does not fit in {scratch_height}px scratch page, clipping"
            )
            height = scratch_height
        else:
            height = pad + (box.height - spare_height) + pad

        logger.debug(f"Render target: {width}x{height:.1f} logical px")

        yield RenderTarget(page=page, width=width, height=height)
    finally:
        doc.close()
        logger.debug("Render target released")


def rasterize(target: RenderTarget, scale: float = 2.0) -> RasterBitmap:
    """
    Rasterize the render target's container area to an RGB bitmap.

    Args:
        target: Laid-out render target
        scale: Device pixels per logical pixel

    Returns:
        RasterBitmap of roughly (height * scale, width * scale)
    """
    matrix = fitz.Matrix(scale, scale)
    pixmap = target.page.get_pixmap(matrix=matrix, clip=target.clip, alpha=False)

    # Copy to own the memory; the pixmap dies with the document
    image = np.frombuffer(pixmap.samples, dtype=np.uint8).reshape(
        pixmap.height, pixmap.width, pixmap.n
    ).copy()

    logger.debug(f"Rasterized: {pixmap.width}x{pixmap.height} @ {scale}x")

    return RasterBitmap(pixels=image, scale=scale)


class HtmlRenderer:
    """
    Renderer backed by PyMuPDF's HTML layout.

    One instance renders one document at a time; overlapping calls raise
    RenderTargetBusy instead of waiting.
    """

    def __init__(self, css: Optional[str] = DOCUMENT_CSS):
        self.css = css
        self._lock = threading.Lock()

    def render(self, markup: str, layout: PageLayout) -> RasterBitmap:
        if not self._lock.acquire(blocking=False):
            raise RenderTargetBusy("A render is already in progress")
        try:
            with open_render_target(markup, layout, css=self.css) as target:
                return rasterize(target, scale=layout.scale)
        finally:
            self._lock.release()
