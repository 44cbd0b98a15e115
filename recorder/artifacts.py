"""Writes exported traces and manifests to the output directory."""

import logging
from pathlib import Path

from recorder.exceptions import ExportError

logger = logging.getLogger(__name__)


class ArtifactWriter:
    """Saves session artifacts as files under one directory."""

    def __init__(self, output_dir: Path):
        """Initialize artifact writer.

        Args:
            output_dir: Directory for exported files, created on first write
        """
        self.output_dir = Path(output_dir)

    def write(self, session_id: str, filename: str, data: str) -> Path:
        """Write ``data`` to ``<output_dir>/<session_id>_<filename>``.

        Returns:
            Path of the written file

        Raises:
            ExportError: If the file cannot be written
        """
        path = self.output_dir / f"{session_id}_{filename}"
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(data, encoding="utf-8")
        except OSError as e:
            raise ExportError(f"Failed to write {path}: {e}") from e

        logger.info(f"Saved {filename} ({len(data)} bytes) to {path}")
        return path
