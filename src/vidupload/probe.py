from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable

from vidupload.exceptions import ExternalToolError
from vidupload.process import CommandRunner

logger = logging.getLogger(__name__)

FFPROBE_ARGS = ("-v", "error", "-print_format", "json", "-show_streams")

_KNOWN_FIELDS = ("index", "codec_type", "codec_name", "width", "height")


class Orientation(str, Enum):
    """Dominant frame shape of a video."""

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"

    @classmethod
    def from_dimensions(cls, width: int, height: int) -> Orientation:
        if width > height:
            return cls.LANDSCAPE
        if height > width:
            return cls.PORTRAIT
        return cls.OTHER


@dataclass
class StreamDescriptor:
    """A single stream entry reported by ffprobe.

    Attributes:
        index: Stream index within the container.
        codec_type: ``video``, ``audio``, ``data``, ``subtitle``...
        codec_name: Short codec name, empty when ffprobe omits it.
        width: Frame width in pixels, 0 for streams without geometry.
        height: Frame height in pixels, 0 for streams without geometry.
        extra: Every other field ffprobe reported, untouched.
    """

    index: int
    codec_type: str
    codec_name: str = ""
    width: int = 0
    height: int = 0
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_video(self) -> bool:
        return self.codec_type == "video"

    @classmethod
    def from_dict(cls, data: Any, position: int = 0) -> StreamDescriptor:
        """Builds a descriptor from one element of ffprobe's ``streams`` array.

        Raises:
            ExternalToolError: If the entry isn't an object or a known field has the wrong type.
        """
        if not isinstance(data, dict):
            raise ExternalToolError(f"Stream entry {position} is not an object: {data!r}", command="ffprobe")

        index = data.get("index", position)
        codec_type = data.get("codec_type", "")
        codec_name = data.get("codec_name", "")
        width = data.get("width", 0)
        height = data.get("height", 0)

        for name, value in (("index", index), ("width", width), ("height", height)):
            if not isinstance(value, int) or isinstance(value, bool):
                raise ExternalToolError(f"Stream {position} has non-integer {name}: {value!r}", command="ffprobe")
        for name, value in (("codec_type", codec_type), ("codec_name", codec_name)):
            if not isinstance(value, str):
                raise ExternalToolError(f"Stream {position} has non-string {name}: {value!r}", command="ffprobe")

        extra = {key: value for key, value in data.items() if key not in _KNOWN_FIELDS}
        return cls(
            index=index, codec_type=codec_type, codec_name=codec_name, width=width, height=height, extra=extra
        )


def parse_streams(output: bytes | str) -> list[StreamDescriptor]:
    """Decodes ffprobe ``-show_streams`` JSON output.

    Args:
        output: Raw ffprobe stdout.

    Returns:
        Stream descriptors in the order ffprobe reported them.

    Raises:
        ExternalToolError: If the output is not the expected JSON structure.
    """
    try:
        payload = json.loads(output)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ExternalToolError(f"Error parsing ffprobe output: {e}", command="ffprobe") from e

    if not isinstance(payload, dict):
        raise ExternalToolError("ffprobe output is not a JSON object", command="ffprobe")

    streams = payload.get("streams", [])
    if not isinstance(streams, list):
        raise ExternalToolError("ffprobe 'streams' field is not a list", command="ffprobe")

    return [StreamDescriptor.from_dict(entry, position) for position, entry in enumerate(streams)]


def probe_streams(path: str | Path, runner: CommandRunner) -> list[StreamDescriptor]:
    """Runs ffprobe on ``path`` and returns its stream descriptors."""
    output = runner.run("ffprobe", [*FFPROBE_ARGS, str(path)])
    return parse_streams(output)


def orientation_of(streams: Iterable[StreamDescriptor]) -> Orientation | None:
    """Classifies the first video stream; later video streams and non-video streams are ignored.

    Returns:
        The orientation, or None when there is no video stream at all.
    """
    for stream in streams:
        if stream.is_video:
            return Orientation.from_dimensions(stream.width, stream.height)
    return None


def classify_orientation(path: str | Path, runner: CommandRunner) -> Orientation | None:
    """Determines the orientation of the video at ``path``.

    A file without any video stream is unclassifiable and yields None rather than an error.

    Raises:
        ExternalToolError: If ffprobe fails or its output can't be decoded.
    """
    orientation = orientation_of(probe_streams(path, runner))
    if orientation is None:
        logger.warning("No video stream found in %s, leaving orientation unclassified", path)
    return orientation
