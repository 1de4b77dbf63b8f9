import numpy as np
import pytest

from declaration_export.compression import compress_to_size, encode_jpeg, jpeg_quality
from declaration_export.errors import EncodingFailed
from declaration_export.settings import MAX_ITERATIONS, SizeWindow

from .conftest import sized_encoder

WINDOW = SizeWindow(20480, 51200)
IMAGE = np.zeros((4, 4, 3), dtype=np.uint8)


def test_inverse_encoder_finds_window():
    # size = k / q; at the first midpoint (0.5) this is 32768 bytes
    encoder = sized_encoder(lambda q: round(16384 / q))
    result = compress_to_size(IMAGE, WINDOW, encoder)
    assert result.in_window
    assert WINDOW.contains(result.size)
    assert len(encoder.calls) <= MAX_ITERATIONS


def test_increasing_encoder_narrows_ceiling():
    encoder = sized_encoder(lambda q: round(150000 * q))
    result = compress_to_size(IMAGE, WINDOW, encoder)
    assert result.in_window
    assert result.quality == pytest.approx(0.3)
    assert encoder.calls == pytest.approx([0.5, 0.3])


def test_increasing_encoder_raises_floor():
    encoder = sized_encoder(lambda q: round(40000 * q))
    result = compress_to_size(IMAGE, WINDOW, encoder)
    assert result.in_window
    assert encoder.calls[0] == pytest.approx(0.5)
    assert encoder.calls[1] == pytest.approx(0.7)
    assert result.quality == pytest.approx(0.7)


def test_unreachable_window_falls_back():
    # Always too large: ceiling drops every time, then one final re-encode
    encoder = sized_encoder(lambda q: 10 ** 6)
    result = compress_to_size(IMAGE, WINDOW, encoder)
    assert not result.in_window
    assert result.size == 10 ** 6
    assert len(encoder.calls) == MAX_ITERATIONS + 1
    assert encoder.calls[-1] == encoder.calls[-2]
    assert result.quality == pytest.approx(encoder.calls[-2])


def test_non_monotonic_encoder_terminates():
    # Alternates between too small and too large regardless of quality
    state = {"n": 0}

    def size_fn(q):
        state["n"] += 1
        return 100 if state["n"] % 2 else 900000

    encoder = sized_encoder(size_fn)
    result = compress_to_size(IMAGE, WINDOW, encoder)
    assert len(encoder.calls) == MAX_ITERATIONS + 1
    assert result.data
    assert not result.in_window
    assert 0.1 <= result.quality <= 0.9


def test_every_attempt_empty_raises():
    encoder = sized_encoder(lambda q: None)
    with pytest.raises(EncodingFailed):
        compress_to_size(IMAGE, WINDOW, encoder)
    assert len(encoder.calls) == MAX_ITERATIONS + 1


def test_some_empty_attempts_are_tolerated():
    state = {"n": 0}

    def size_fn(q):
        state["n"] += 1
        return None if state["n"] == 1 else 30000

    encoder = sized_encoder(size_fn)
    result = compress_to_size(IMAGE, WINDOW, encoder)
    # Bounds do not move on an empty attempt, so the same midpoint is retried
    assert encoder.calls == pytest.approx([0.5, 0.5])
    assert result.in_window
    assert result.attempts == [(0.5, 30000)]


def test_empty_fallback_reuses_best_candidate():
    calls = []

    def encoder(image, q):
        calls.append(q)
        if len(calls) > MAX_ITERATIONS:
            return None
        return b"\x00" * 100

    result = compress_to_size(IMAGE, WINDOW, encoder)
    assert result.size == 100
    assert result.quality == pytest.approx(calls[MAX_ITERATIONS - 1])


def test_attempts_are_recorded():
    encoder = sized_encoder(lambda q: round(150000 * q))
    result = compress_to_size(IMAGE, WINDOW, encoder)
    assert [size for _, size in result.attempts] == [75000, 45000]


@pytest.mark.parametrize("quality, expected", [
    (0.0, 1), (0.1, 10), (0.5, 50), (0.754, 75), (1.0, 100), (1.5, 100),
])
def test_jpeg_quality_mapping(quality, expected):
    assert jpeg_quality(quality) == expected


def _noisy_image():
    rng = np.random.RandomState(0)
    return rng.randint(0, 256, size=(256, 256, 3), dtype=np.uint8)


def test_encode_jpeg_produces_jpeg():
    data = encode_jpeg(_noisy_image(), 0.5)
    assert data[:2] == b"\xff\xd8"
    assert data[-2:] == b"\xff\xd9"


def test_encode_jpeg_size_grows_with_quality():
    image = _noisy_image()
    assert len(encode_jpeg(image, 0.9)) > len(encode_jpeg(image, 0.1))


def test_encode_jpeg_is_deterministic():
    image = _noisy_image()
    assert encode_jpeg(image, 0.37) == encode_jpeg(image, 0.37)


def test_encode_jpeg_empty_image_returns_none():
    assert encode_jpeg(np.zeros((0, 10, 3), dtype=np.uint8), 0.5) is None


def test_real_encoder_search_terminates():
    result = compress_to_size(_noisy_image(), WINDOW)
    assert result.data[:2] == b"\xff\xd8"
    assert len(result.attempts) <= MAX_ITERATIONS + 1


def test_size_window_validation():
    with pytest.raises(ValueError):
        SizeWindow(100, 10)
