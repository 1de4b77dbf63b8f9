import numpy as np
import pytest

from declaration_export.compositor import compose, content_height, final_height, to_rgb
from declaration_export.render import RasterBitmap
from declaration_export.settings import PageLayout

from .conftest import BACKGROUND


def _bitmap(height, width=1588, value=0, channels=3):
    shape = (height, width) if channels == 0 else (height, width, channels)
    return RasterBitmap(pixels=np.full(shape, value, dtype=np.uint8), scale=2.0)


def test_short_content_gets_minimum_height(layout):
    surface = compose(_bitmap(200), layout)
    assert surface.shape == (int(1123 * 0.85 * 2), 1588, 3)


def test_tall_content_is_clipped_below_page(layout):
    # 3000 logical px of content clips to 1123 - 40, plus the 80 px bottom pad
    surface = compose(_bitmap(6000), layout)
    assert surface.shape == ((1123 - 40 + 80) * 2, 1588, 3)


@pytest.mark.parametrize("bitmap_height", [0, 1, 240, 1500, 1908, 1910, 2166, 2400, 9000])
def test_final_height_bounds(layout, bitmap_height):
    height = final_height(bitmap_height, layout)
    assert height >= 0.85 * layout.page_height
    assert height >= content_height(bitmap_height, layout) + layout.bottom_pad


def test_content_height_uses_scale(layout):
    assert content_height(1000, layout) == 500
    assert content_height(5000, layout) == 1123 - 40


def test_area_outside_bitmap_is_background(layout):
    surface = compose(_bitmap(400, width=800, value=0), layout)
    assert (surface[:400, :800] == 0).all()
    assert (surface[400:, :] == BACKGROUND).all()
    assert (surface[:, 800:] == BACKGROUND).all()


def test_wide_bitmap_is_clipped(layout):
    surface = compose(_bitmap(300, width=2000, value=10), layout)
    assert surface.shape[1] == 1588
    assert (surface[:300] == 10).all()


def test_transparent_pixels_become_background(layout):
    bitmap = _bitmap(100, value=0, channels=4)
    bitmap.pixels[:50, :, 3] = 255
    surface = compose(bitmap, layout)
    assert (surface[:50] == 0).all()
    assert (surface[50:100] == BACKGROUND).all()


def test_grayscale_bitmap_is_expanded(layout):
    surface = compose(_bitmap(100, value=128, channels=0), layout)
    assert (surface[:100] == 128).all()


def test_input_bitmap_untouched(layout):
    bitmap = _bitmap(100, value=7)
    before = bitmap.pixels.copy()
    compose(bitmap, layout)
    assert np.array_equal(bitmap.pixels, before)


def test_custom_background():
    layout = PageLayout(background="#000000")
    surface = compose(_bitmap(10, value=255), layout)
    assert (surface[10:] == 0).all()


def test_to_rgb_rejects_odd_channel_count():
    with pytest.raises(ValueError):
        to_rgb(np.zeros((2, 2, 2), dtype=np.uint8), BACKGROUND)
