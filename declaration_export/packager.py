"""
packager.py - File naming and saving of the exported image.

The file name is derived from the applicant name. Bytes are written through a
temporary file in the destination directory and moved into place, so an
interrupted save never leaves a half-written image under the final name.
"""

import logging
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .compression import CompressionResult
from .settings import FALLBACK_NAME, FILE_EXTENSION, FILE_PREFIX

logger = logging.getLogger(__name__)

MIME_TYPE = "image/jpeg"
SEPARATOR = "_"

_WHITESPACE = re.compile(r"\s+")
# Characters no common filesystem accepts in a name
_UNSAFE = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def sanitize_name(name: str, fallback: str = FALLBACK_NAME) -> str:
    """Trim, collapse whitespace runs to '_' and drop path-unsafe characters."""
    text = _WHITESPACE.sub(SEPARATOR, (name or "").strip())
    text = _UNSAFE.sub(SEPARATOR, text)
    return text or fallback


def build_file_name(
    applicant_name: str,
    prefix: str = FILE_PREFIX,
    fallback: str = FALLBACK_NAME
) -> str:
    """e.g. '  Ram   Kumar  ' -> 'Ghoshna_Patra_Ram_Kumar.jpg'"""
    return f"{prefix}{SEPARATOR}{sanitize_name(applicant_name, fallback)}{FILE_EXTENSION}"


@dataclass(frozen=True)
class OutputArtifact:
    """Final named image, ready to save."""
    file_name: str
    data: bytes
    quality: float
    mime_type: str = MIME_TYPE

    @property
    def size(self) -> int:
        return len(self.data)


def package(
    result: CompressionResult,
    applicant_name: str,
    prefix: str = FILE_PREFIX,
    fallback: str = FALLBACK_NAME
) -> OutputArtifact:
    return OutputArtifact(
        file_name=build_file_name(applicant_name, prefix, fallback),
        data=result.data,
        quality=result.quality
    )


def unique_path(path: Path) -> Path:
    """Append ' (1)', ' (2)', ... before the suffix until the name is free."""
    if not path.exists():
        return path
    n = 1
    while True:
        candidate = path.with_name(f"{path.stem} ({n}){path.suffix}")
        if not candidate.exists():
            return candidate
        n += 1


def save_artifact(
    artifact: OutputArtifact,
    output_dir: Path,
    overwrite: bool = False
) -> Path:
    """
    Write the artifact into output_dir.

    Args:
        artifact: Image to save
        output_dir: Destination directory (created if missing)
        overwrite: Replace an existing file instead of picking a new name

    Returns:
        Path of the saved file
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    target = output_dir / artifact.file_name
    if not overwrite:
        target = unique_path(target)

    fd, tmp_name = tempfile.mkstemp(
        prefix=".", suffix=".part", dir=output_dir
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(artifact.data)
        os.replace(tmp_path, target)
    finally:
        # Gone already after a successful replace
        if tmp_path.exists():
            tmp_path.unlink()
            logger.debug(f"Removed temporary file {tmp_path.name}")

    logger.info(f"Saved {target.name} ({artifact.size:,} bytes)")
    return target
