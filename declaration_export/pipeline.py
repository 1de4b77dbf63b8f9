"""
pipeline.py - Declaration export pipeline.

Pipeline:
1. Interpolate the record into the document markup
2. Lay out and rasterize off-screen at 2x
3. Composite onto a fixed-width page surface
4. Search JPEG quality for a 20-50 KB file
5. Name and save the file

Every step runs to completion before the next one starts. Failures are
caught here and reported on the ExportResult; nothing is written on failure.
"""

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple

import numpy as np

from .compositor import compose
from .compression import CompressionResult, Encoder, compress_to_size, encode_jpeg
from .errors import ContentUnavailable
from .packager import OutputArtifact, package, save_artifact
from .record import DeclarationRecord, validate_record
from .render import HtmlRenderer, Renderer
from .settings import ExportSettings
from .template import build_markup

logger = logging.getLogger(__name__)


@dataclass
class SessionFlags:
    """One-time prompts for the current session, owned by the caller."""
    feedback_prompt_shown: bool = False

    def claim_feedback_prompt(self) -> bool:
        """True the first time only."""
        if self.feedback_prompt_shown:
            return False
        self.feedback_prompt_shown = True
        return True


@dataclass
class ExportResult:
    """Result of exporting one declaration."""
    success: bool = False
    error: Optional[str] = None
    error_type: Optional[str] = None

    file_name: str = ""
    output_path: Optional[Path] = None

    width: int = 0
    height: int = 0
    quality: float = 0.0
    output_size: int = 0
    in_window: bool = False
    attempts: int = 0
    total_time: float = 0.0

    offer_feedback: bool = False

    def summary(self) -> str:
        if not self.success:
            return f"Export failed: {self.error}"
        window = "in window" if self.in_window else "outside window"
        return (
            f"Output: {self.file_name} ({self.output_size:,} bytes, "
            f"{self.output_size / 1024:.2f} KB, {window})\n"
            f"Image: {self.width}x{self.height} | q={self.quality:.3f} | "
            f"{self.attempts} encode(s)\n"
            f"Time: {self.total_time:.1f}s"
        )


class DeclarationExporter:
    """
    Runs exports one at a time.

    A call made while another export is still running is rejected with an
    unsuccessful result; there is no queue.
    """

    def __init__(
        self,
        renderer: Optional[Renderer] = None,
        encoder: Encoder = encode_jpeg,
        settings: ExportSettings = ExportSettings(),
        session: Optional[SessionFlags] = None,
        markup_builder: Callable[[DeclarationRecord], Optional[str]] = build_markup
    ):
        self.renderer = renderer if renderer is not None else HtmlRenderer()
        self.encoder = encoder
        self.settings = settings
        self.session = session
        self.markup_builder = markup_builder
        self._busy = threading.Lock()

    def _run(
        self, record: DeclarationRecord
    ) -> Tuple[OutputArtifact, np.ndarray, CompressionResult]:
        settings = self.settings
        layout = settings.layout

        markup = self.markup_builder(record)
        if markup is None or not markup.strip():
            raise ContentUnavailable("Document content is not available")

        bitmap = self.renderer.render(markup, layout)
        logger.debug(f"Captured {bitmap.width}x{bitmap.height}")

        surface = compose(bitmap, layout)

        compressed = compress_to_size(
            surface,
            window=settings.window,
            encoder=self.encoder,
            max_iterations=settings.max_iterations
        )

        artifact = package(
            compressed,
            record.applicant_name,
            prefix=settings.file_prefix,
            fallback=settings.fallback_name
        )
        return artifact, surface, compressed

    def build_artifact(self, record: DeclarationRecord) -> OutputArtifact:
        """Render and compress without saving."""
        artifact, _, _ = self._run(record)
        return artifact

    def export(
        self,
        record: DeclarationRecord,
        output_dir: Path,
        overwrite: bool = False,
        require_complete: bool = True
    ) -> ExportResult:
        """
        Export a declaration to a JPEG in output_dir.

        Args:
            record: Filled declaration
            output_dir: Where to save the image
            overwrite: Replace an existing file of the same name
            require_complete: Refuse records with unset fields

        Returns:
            ExportResult; check .success
        """
        result = ExportResult()

        if not self._busy.acquire(blocking=False):
            logger.warning("Export requested while another is in progress, ignoring")
            result.error = "export already in progress"
            result.error_type = "ExportInProgress"
            return result

        try:
            start_time = time.time()

            if require_complete:
                validate_record(record)

            artifact, surface, compressed = self._run(record)
            result.output_path = save_artifact(artifact, output_dir, overwrite=overwrite)

            result.file_name = result.output_path.name
            result.height, result.width = surface.shape[:2]
            result.quality = compressed.quality
            result.output_size = compressed.size
            result.in_window = compressed.in_window
            result.attempts = len(compressed.attempts)
            result.success = True

            if self.session is not None:
                result.offer_feedback = self.session.claim_feedback_prompt()

            result.total_time = time.time() - start_time
            logger.info(f"\n{result.summary()}")

        except Exception as e:
            logger.error(f"Export failed: {e}")
            result.error = str(e)
            result.error_type = type(e).__name__

        finally:
            self._busy.release()

        return result


def export_declaration(
    record: DeclarationRecord,
    output_dir: Path,
    renderer: Optional[Renderer] = None,
    encoder: Encoder = encode_jpeg,
    settings: ExportSettings = ExportSettings(),
    session: Optional[SessionFlags] = None,
    overwrite: bool = False
) -> ExportResult:
    """One-shot export with a fresh exporter."""
    exporter = DeclarationExporter(
        renderer=renderer,
        encoder=encoder,
        settings=settings,
        session=session
    )
    return exporter.export(record, output_dir, overwrite=overwrite)
