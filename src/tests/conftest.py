import io
import json
import shutil
from pathlib import Path

import boto3
import pytest
from botocore.stub import Stubber

from vidupload.exceptions import ExternalToolError
from vidupload.normalize import normalize_for_streaming
from vidupload.pipeline import UploadOrchestrator, UploadRequest
from vidupload.probe import classify_orientation
from vidupload.staging import StagingManager
from vidupload.storage import S3ObjectStore

from .test_config import FAKE_VIDEO_BYTES, LANDSCAPE_STREAMS, TEST_BUCKET, TEST_REGION


class FakeRunner:
    """Stands in for ffmpeg/ffprobe.

    ffmpeg copies its input to the output path, ffprobe reports ``streams``. Commands listed
    in ``fail_on`` raise ExternalToolError, optionally after writing ``partial_output``.
    """

    def __init__(self, streams=None, fail_on=(), partial_output=False, probe_output=None):
        self.streams = LANDSCAPE_STREAMS if streams is None else streams
        self.fail_on = set(fail_on)
        self.partial_output = partial_output
        self.probe_output = probe_output
        self.calls = []

    def run(self, command, args):
        args = list(args)
        self.calls.append((command, args))

        if command == "ffmpeg":
            source, output = Path(args[args.index("-i") + 1]), Path(args[-1])
            if command in self.fail_on:
                if self.partial_output:
                    output.write_bytes(b"partial")
                raise ExternalToolError("ffmpeg exited with code 1", command="ffmpeg", returncode=1)
            shutil.copyfile(source, output)
            return b""

        if command == "ffprobe":
            if command in self.fail_on:
                raise ExternalToolError("ffprobe exited with code 1", command="ffprobe", returncode=1)
            if self.probe_output is not None:
                return self.probe_output
            return json.dumps({"streams": self.streams}).encode()

        raise AssertionError(f"Unexpected command {command}")

    def commands(self):
        return [command for command, _ in self.calls]


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def scratch_dir(tmp_path):
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def stager(fake_runner, scratch_dir):
    return StagingManager(
        normalizer=lambda path: normalize_for_streaming(path, runner=fake_runner),
        scratch_dir=scratch_dir,
        chunk_size=1024,
    )


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name=TEST_REGION,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def s3_stubber(s3_client):
    with Stubber(s3_client) as stubber:
        yield stubber


@pytest.fixture
def object_store(s3_client):
    return S3ObjectStore(s3_client, bucket=TEST_BUCKET, region=TEST_REGION)


@pytest.fixture
def orchestrator(stager, object_store, fake_runner):
    return UploadOrchestrator(
        stager=stager,
        object_store=object_store,
        classifier=lambda path: classify_orientation(path, runner=fake_runner),
    )


@pytest.fixture
def upload_request():
    return UploadRequest(stream=io.BytesIO(FAKE_VIDEO_BYTES), media_type="video/mp4", extension=".mp4")
