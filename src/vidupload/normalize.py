from __future__ import annotations

import logging
from pathlib import Path

from vidupload.process import CommandRunner

logger = logging.getLogger(__name__)

FAST_START_SUFFIX = ".faststart"


def fast_start_path(path: str | Path) -> Path:
    """Sibling path the normalized copy of ``path`` is written to."""
    path = Path(path)
    return path.with_name(path.name + FAST_START_SUFFIX)


def normalize_for_streaming(path: str | Path, runner: CommandRunner) -> Path:
    """Remuxes ``path`` so the MP4 index sits at the front of the file.

    Audio and video samples are stream-copied, nothing is re-encoded. The source file is
    never modified; the result is written next to it with a ``.faststart`` suffix.

    Args:
        path: File to normalize.
        runner: Runner used to invoke ffmpeg.

    Returns:
        Path of the new file. Both it and ``path`` exist afterwards and belong to the caller.

    Raises:
        ExternalToolError: If ffmpeg fails. Any partial output is removed, ``path`` is left alone.
    """
    output = fast_start_path(path)
    args = [
        "-v",
        "error",
        "-y",
        "-i",
        str(path),
        # Copy streams as-is
        "-c",
        "copy",
        "-movflags",
        "faststart",
        "-f",
        "mp4",
        str(output),
    ]

    try:
        runner.run("ffmpeg", args)
    except BaseException:
        output.unlink(missing_ok=True)
        raise

    logger.debug("Normalized %s into %s", path, output)
    return output
