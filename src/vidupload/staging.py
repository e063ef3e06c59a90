"""Local staging of uploaded videos.

An upload is copied to a uniquely named temp file, remuxed for fast start and opened for
reading. Every file and handle created along the way is registered on an ``ExitStack``
as soon as it exists, so leaving the ``stage`` block (normally or through any exception)
closes the handle and removes both files.
"""

from __future__ import annotations

import logging
import os
import tempfile
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Iterator

from vidupload.config import DEFAULT_CHUNK_SIZE
from vidupload.exceptions import StorageIOError
from vidupload.progress import log, progress_iter

logger = logging.getLogger(__name__)

TEMP_PREFIX = "vidupload-"
TEMP_SUFFIX = ".mp4"

Normalizer = Callable[[Path], Path]


@dataclass
class StagedFile:
    """The live artifact of a staged upload.

    Attributes:
        path: Normalized file on disk. Only valid inside the staging block.
        source_path: Raw copy of the upload the normalized file was made from.
        handle: Open binary handle on ``path``, positioned at offset 0.
    """

    path: Path
    source_path: Path
    handle: BinaryIO


class StagingManager:
    """Materializes upload streams on scratch storage and cleans up after them."""

    def __init__(
        self,
        normalizer: Normalizer,
        scratch_dir: str | Path | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        """Initializes the staging manager.

        Args:
            normalizer: Called with the raw temp file path, returns the path of a new normalized file.
            scratch_dir: Where temp files are created. System temp dir when None.
            chunk_size: Bytes read from the upload stream per iteration.
        """
        self.normalizer = normalizer
        self.scratch_dir = Path(scratch_dir) if scratch_dir is not None else Path(tempfile.gettempdir())
        self.chunk_size = chunk_size

    @contextmanager
    def stage(self, source: BinaryIO) -> Iterator[StagedFile]:
        """Stages ``source`` and yields the normalized, rewound file.

        Example:
            >>> with manager.stage(upload) as staged:
            ...     store.put(key, staged.handle, "video/mp4")

        Raises:
            StorageIOError: If copying, opening or seeking fails on the local filesystem.
            ExternalToolError: If the normalizer fails.
        """
        with ExitStack() as cleanup:
            raw_path = self._create_temp_file(source, cleanup)

            normalized_path = self.normalizer(raw_path)
            cleanup.callback(_remove, normalized_path)

            handle = self._open_normalized(normalized_path)
            cleanup.callback(_close, handle)

            try:
                handle.seek(0, os.SEEK_SET)
            except OSError as e:
                raise StorageIOError(f"Could not rewind {normalized_path}: {e}") from e

            log("Staged upload at %s", normalized_path)
            yield StagedFile(path=normalized_path, source_path=raw_path, handle=handle)

    def _create_temp_file(self, source: BinaryIO, cleanup: ExitStack) -> Path:
        try:
            self.scratch_dir.mkdir(parents=True, exist_ok=True)
            fd, name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX, dir=self.scratch_dir)
        except OSError as e:
            raise StorageIOError(f"Could not create temp file in {self.scratch_dir}: {e}") from e

        path = Path(name)
        cleanup.callback(_remove, path)

        try:
            with os.fdopen(fd, "wb") as destination:
                copied = 0
                for chunk in progress_iter(self._read_chunks(source), desc="Staging upload", unit="chunk"):
                    destination.write(chunk)
                    copied += len(chunk)
        except OSError as e:
            raise StorageIOError(f"Could not copy upload into {path}: {e}") from e

        logger.debug("Copied %d bytes into %s", copied, path)
        return path

    def _read_chunks(self, source: BinaryIO) -> Iterator[bytes]:
        while chunk := source.read(self.chunk_size):
            yield chunk

    def _open_normalized(self, path: Path) -> BinaryIO:
        try:
            return open(path, "rb")
        except OSError as e:
            raise StorageIOError(f"Could not open normalized file {path}: {e}") from e


def _close(handle: BinaryIO) -> None:
    try:
        handle.close()
    except OSError:
        # Cleanup must not replace the error that is already propagating
        logger.exception("Error closing staged file handle")


def _remove(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.exception("Error removing staged file %s", path)
