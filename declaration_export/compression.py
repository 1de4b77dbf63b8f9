"""
compression.py - JPEG encoding with a size-bounded quality search.

The encoder takes a quality in [0, 1]. Output size usually grows with quality
but is not guaranteed to, so the search is bounded by iteration count rather
than by convergence.
"""

import io
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import numpy as np
from PIL import Image

from .errors import EncodingFailed
from .settings import (
    DEFAULT_QUALITY,
    MAX_ITERATIONS,
    QUALITY_HIGH,
    QUALITY_LOW,
    SizeWindow,
)

logger = logging.getLogger(__name__)

# (image, quality in [0, 1]) -> encoded bytes, or None when nothing was produced
Encoder = Callable[[np.ndarray, float], Optional[bytes]]


@dataclass
class CompressionResult:
    """Encoded image and the quality that produced it."""
    data: bytes
    quality: float
    in_window: bool
    attempts: List[Tuple[float, int]] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.data)


def jpeg_quality(quality: float) -> int:
    """Map a [0, 1] quality onto libjpeg's 1-100 scale."""
    return max(1, min(100, int(round(quality * 100))))


def encode_jpeg(image: np.ndarray, quality: float) -> Optional[bytes]:
    """
    Encode an RGB array as baseline JPEG.

    Args:
        image: RGB (or grayscale) numpy array
        quality: 0.0-1.0, lower = smaller

    Returns:
        JPEG bytes, or None if the image is empty or cannot be encoded
    """
    if image.size == 0:
        logger.warning("Refusing to encode an empty image")
        return None

    if image.ndim == 2:
        img = Image.fromarray(image)
    else:
        if image.shape[2] == 4:
            image = image[:, :, :3]
        img = Image.fromarray(np.ascontiguousarray(image))

    buffer = io.BytesIO()
    try:
        img.save(
            buffer,
            format="JPEG",
            quality=jpeg_quality(quality),
            optimize=True,
            subsampling=2  # 4:2:0 chroma subsampling
        )
    except (OSError, ValueError) as e:
        logger.warning(f"JPEG encode failed at q={quality:.3f}: {e}")
        return None

    return buffer.getvalue()


def compress_to_size(
    image: np.ndarray,
    window: SizeWindow = SizeWindow(),
    encoder: Encoder = encode_jpeg,
    max_iterations: int = MAX_ITERATIONS
) -> CompressionResult:
    """
    Binary-search encoder quality until the output lands in the size window.

    Each iteration encodes at the midpoint of [low, high]: too small raises
    the floor, too large lowers the ceiling, in-window returns immediately.
    The latest non-empty attempt is always kept as the best candidate. If no
    attempt lands in the window, the best candidate's quality is encoded once
    more and accepted whatever its size.

    Raises:
        EncodingFailed: the encoder never produced any data
    """
    low, high = QUALITY_LOW, QUALITY_HIGH
    best_quality = DEFAULT_QUALITY
    best_data: Optional[bytes] = None
    attempts: List[Tuple[float, int]] = []

    for i in range(max_iterations):
        mid = (low + high) / 2
        data = encoder(image, mid)

        if data is None:
            logger.debug(f"Attempt {i + 1}: q={mid:.4f} produced no data")
            continue

        size = len(data)
        attempts.append((mid, size))
        logger.debug(f"Attempt {i + 1}: q={mid:.4f} -> {size:,} bytes")

        if size < window.min_size:
            low = mid
        elif size > window.max_size:
            high = mid
        else:
            logger.info(
                f"Compressed to {size:,} bytes at q={mid:.4f} "
                f"after {i + 1} attempt(s)"
            )
            return CompressionResult(
                data=data, quality=mid, in_window=True, attempts=attempts
            )

        best_data, best_quality = data, mid

    # Window missed: one more pass at the best candidate, take what comes back
    data = encoder(image, best_quality)
    if data is None:
        if best_data is None:
            raise EncodingFailed(
                f"Encoder returned no data in {max_iterations + 1} attempts"
            )
        data = best_data
    else:
        attempts.append((best_quality, len(data)))

    in_window = window.contains(len(data))
    logger.info(
        f"Size window [{window.min_size:,}, {window.max_size:,}] missed, "
        f"using {len(data):,} bytes at q={best_quality:.4f}"
    )

    return CompressionResult(
        data=data, quality=best_quality, in_window=in_window, attempts=attempts
    )
