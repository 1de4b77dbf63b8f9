import hashlib

import numpy as np
import pytest

from declaration_export.record import DeclarationRecord
from declaration_export.render import RasterBitmap
from declaration_export.settings import PageLayout

BACKGROUND = (255, 254, 247)


class SyntheticRenderer:
    """Deterministic stand-in for the HTML renderer."""

    def __init__(self, logical_height=600):
        self.logical_height = logical_height
        self.calls = []

    def render(self, markup, layout):
        self.calls.append(markup)
        width = int(layout.page_width * layout.scale)
        height = int(self.logical_height * layout.scale)
        pixels = np.empty((height, width, 3), dtype=np.uint8)
        pixels[:, :] = layout.background_rgb

        # Dark "text lines" whose lengths depend on the markup
        digest = hashlib.sha256(markup.encode("utf-8")).digest()
        for i, b in enumerate(digest[:16]):
            y = 120 + i * 40
            if y + 12 > height:
                break
            pixels[y:y + 12, 120:120 + 200 + b * 4] = (26, 26, 26)

        return RasterBitmap(pixels=pixels, scale=layout.scale)


def sized_encoder(size_fn):
    """Encoder whose output length is size_fn(quality); records calls."""
    calls = []

    def encode(image, quality):
        calls.append(quality)
        size = size_fn(quality)
        if size is None:
            return None
        return b"\xff" * int(size)

    encode.calls = calls
    return encode


@pytest.fixture
def layout():
    return PageLayout()


@pytest.fixture
def renderer():
    return SyntheticRenderer()


@pytest.fixture
def record():
    return DeclarationRecord(
        applicant_name="  Ram   Kumar  ",
        father_name="Shyam Kumar",
        age="32",
        year="2025",
        occupation="Farmer",
        address="Village Rampur, Patna, Bihar 800001",
        place="Patna",
        date="2025-01-15",
    )
