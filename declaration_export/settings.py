"""
settings.py - Layout and size constants.

A4 at 96 DPI is 794 x 1123 logical pixels. Content is captured at 2x and the
encoded JPEG should land between 20 KB and 50 KB.
"""

from dataclasses import dataclass, field
from typing import Tuple

# Page geometry (logical pixels)
PAGE_WIDTH = 794
PAGE_HEIGHT = 1123
PADDING = 60

# Capture
CAPTURE_SCALE = 2.0
BACKGROUND_COLOR = "#FFFEF7"

# Compositing
TOP_CLIP_MARGIN = 40          # content taller than page - margin is clipped
BOTTOM_PAD = 80               # added below the content
MIN_HEIGHT_FRACTION = 0.85    # of PAGE_HEIGHT

# Output size window
MIN_SIZE = 20 * 1024  # 20 KB
MAX_SIZE = 50 * 1024  # 50 KB

# Quality search
QUALITY_LOW = 0.1
QUALITY_HIGH = 0.9
DEFAULT_QUALITY = 0.5
MAX_ITERATIONS = 8

# File naming
FILE_PREFIX = "Ghoshna_Patra"
FALLBACK_NAME = "Document"
FILE_EXTENSION = ".jpg"


def parse_hex_color(value: str) -> Tuple[int, int, int]:
    """Parse '#RRGGBB' (or '#RGB') into an RGB tuple."""
    text = value.strip().lstrip("#")
    if len(text) == 3:
        text = "".join(c * 2 for c in text)
    if len(text) != 6:
        raise ValueError(f"Invalid color: {value!r}")
    return tuple(int(text[i:i + 2], 16) for i in (0, 2, 4))


@dataclass(frozen=True)
class PageLayout:
    """Fixed page geometry used by the render target and the compositor."""
    page_width: int = PAGE_WIDTH
    page_height: int = PAGE_HEIGHT
    padding: int = PADDING
    scale: float = CAPTURE_SCALE
    background: str = BACKGROUND_COLOR
    top_clip_margin: int = TOP_CLIP_MARGIN
    bottom_pad: int = BOTTOM_PAD
    min_height_fraction: float = MIN_HEIGHT_FRACTION

    @property
    def background_rgb(self) -> Tuple[int, int, int]:
        return parse_hex_color(self.background)


@dataclass(frozen=True)
class SizeWindow:
    """Target byte range for the encoded image."""
    min_size: int = MIN_SIZE
    max_size: int = MAX_SIZE

    def __post_init__(self):
        if self.min_size < 0 or self.max_size < self.min_size:
            raise ValueError(
                f"Invalid size window: [{self.min_size}, {self.max_size}]"
            )

    def contains(self, size: int) -> bool:
        return self.min_size <= size <= self.max_size


@dataclass(frozen=True)
class ExportSettings:
    """Everything one export needs besides the record itself."""
    layout: PageLayout = field(default_factory=PageLayout)
    window: SizeWindow = field(default_factory=SizeWindow)
    max_iterations: int = MAX_ITERATIONS
    file_prefix: str = FILE_PREFIX
    fallback_name: str = FALLBACK_NAME
