import json

import pytest

from vidupload.exceptions import ExternalToolError
from vidupload.probe import (
    Orientation,
    StreamDescriptor,
    classify_orientation,
    orientation_of,
    parse_streams,
    probe_streams,
)

from .conftest import FakeRunner
from .test_config import AUDIO_ONLY_STREAMS, LANDSCAPE_STREAMS, PORTRAIT_STREAMS, SQUARE_STREAMS


@pytest.mark.parametrize(
    "width, height, expected",
    [
        (1920, 1080, Orientation.LANDSCAPE),
        (1080, 1920, Orientation.PORTRAIT),
        (720, 720, Orientation.OTHER),
        (0, 0, Orientation.OTHER),
        (2, 1, Orientation.LANDSCAPE),
    ],
)
def test_orientation_from_dimensions(width, height, expected):
    assert Orientation.from_dimensions(width, height) == expected


@pytest.mark.parametrize(
    "streams, expected",
    [
        (LANDSCAPE_STREAMS, Orientation.LANDSCAPE),
        (PORTRAIT_STREAMS, Orientation.PORTRAIT),
        (SQUARE_STREAMS, Orientation.OTHER),
        (AUDIO_ONLY_STREAMS, None),
        ([], None),
    ],
)
def test_classify_orientation(streams, expected):
    runner = FakeRunner(streams=streams)
    assert classify_orientation("/videos/upload.mp4", runner) == expected


def test_classify_orientation_invokes_ffprobe_with_json_streams():
    runner = FakeRunner()
    classify_orientation("/videos/upload.mp4", runner)

    assert runner.calls == [
        ("ffprobe", ["-v", "error", "-print_format", "json", "-show_streams", "/videos/upload.mp4"]),
    ]


def test_first_video_stream_wins():
    """Picture-in-picture and other later video streams are ignored."""
    streams = parse_streams(
        json.dumps(
            {
                "streams": [
                    {"index": 0, "codec_type": "audio", "codec_name": "aac"},
                    {"index": 1, "codec_type": "data", "codec_name": "bin_data"},
                    {"index": 2, "codec_type": "video", "codec_name": "h264", "width": 1080, "height": 1920},
                    {"index": 3, "codec_type": "video", "codec_name": "h264", "width": 1920, "height": 1080},
                ]
            }
        )
    )
    assert orientation_of(streams) == Orientation.PORTRAIT


def test_parse_streams_keeps_order_and_extra_fields():
    streams = parse_streams(json.dumps({"streams": LANDSCAPE_STREAMS}).encode())

    assert [s.codec_type for s in streams] == ["video", "audio"]
    assert streams[0] == StreamDescriptor(index=0, codec_type="video", codec_name="h264", width=1920, height=1080)
    assert streams[1].width == 0 and streams[1].height == 0
    assert streams[1].extra == {"sample_rate": "48000", "channels": 2}


def test_parse_streams_missing_streams_key_is_empty():
    assert parse_streams(b"{}") == []


@pytest.mark.parametrize(
    "output",
    [
        b"",
        b"not json",
        b"[1, 2, 3]",
        b'{"streams": {"codec_type": "video"}}',
        b'{"streams": ["video"]}',
        b'{"streams": [{"codec_type": "video", "width": "1920", "height": 1080}]}',
        b'{"streams": [{"codec_type": "video", "width": 1920, "height": null}]}',
        b'{"streams": [{"codec_type": 1}]}',
        b"\xff\xfe",
    ],
)
def test_parse_streams_rejects_malformed_output(output):
    with pytest.raises(ExternalToolError):
        parse_streams(output)


def test_classify_orientation_propagates_ffprobe_failure():
    runner = FakeRunner(fail_on={"ffprobe"})
    with pytest.raises(ExternalToolError):
        classify_orientation("/videos/upload.mp4", runner)


def test_probe_streams_malformed_output():
    runner = FakeRunner(probe_output=b'{"streams": [')
    with pytest.raises(ExternalToolError, match="Error parsing ffprobe output"):
        probe_streams("/videos/upload.mp4", runner)
