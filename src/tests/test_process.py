import sys

import pytest

from vidupload.exceptions import ExternalToolError
from vidupload.process import ProcessRunner


def test_run_returns_stdout_bytes():
    runner = ProcessRunner(tool_paths={"python": sys.executable})
    output = runner.run("python", ["-c", "import sys; sys.stdout.write('{\"streams\": []}')"])
    assert output == b'{"streams": []}'


def test_run_non_zero_exit_raises_with_stderr():
    runner = ProcessRunner(tool_paths={"python": sys.executable})

    with pytest.raises(ExternalToolError) as exc_info:
        runner.run("python", ["-c", "import sys; sys.stderr.write('moov atom not found'); sys.exit(3)"])

    error = exc_info.value
    assert error.command == "python"
    assert error.returncode == 3
    assert "moov atom not found" in error.stderr
    assert "moov atom not found" in str(error)


def test_run_missing_executable_raises():
    runner = ProcessRunner(tool_paths={"ffprobe": "/nonexistent/bin/ffprobe"})

    with pytest.raises(ExternalToolError, match="Could not start ffprobe") as exc_info:
        runner.run("ffprobe", ["-version"])

    assert exc_info.value.returncode is None


def test_run_timeout_raises():
    runner = ProcessRunner(tool_paths={"python": sys.executable}, timeout=0.5)

    with pytest.raises(ExternalToolError, match="timed out"):
        runner.run("python", ["-c", "import time; time.sleep(10)"])


def test_resolve_falls_back_to_command_name():
    runner = ProcessRunner(tool_paths={"ffmpeg": "/opt/ffmpeg/bin/ffmpeg"})
    assert runner.resolve("ffmpeg") == "/opt/ffmpeg/bin/ffmpeg"
    assert runner.resolve("ffprobe") == "ffprobe"
