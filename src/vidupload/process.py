from __future__ import annotations

import logging
import subprocess
from typing import Mapping, Protocol, Sequence

from vidupload.exceptions import ExternalToolError

logger = logging.getLogger(__name__)


class CommandRunner(Protocol):
    """Anything that can run an external tool and hand back its stdout."""

    def run(self, command: str, args: Sequence[str]) -> bytes: ...


class ProcessRunner:
    """Runs external media tools as blocking subprocesses.

    A single attempt is made per call. Non-zero exit codes and failures to start the
    process are both raised as ``ExternalToolError``; stderr is kept on the error and
    logged for diagnostics.
    """

    def __init__(self, tool_paths: Mapping[str, str] | None = None, timeout: float | None = None):
        """Initializes the runner.

        Args:
            tool_paths: Optional mapping from logical command name (e.g. ``ffprobe``)
                to the executable that should actually be launched.
            timeout: Seconds to wait for the process. None waits until it exits.
        """
        self.tool_paths = dict(tool_paths or {})
        self.timeout = timeout

    def resolve(self, command: str) -> str:
        return self.tool_paths.get(command, command)

    def run(self, command: str, args: Sequence[str]) -> bytes:
        """Runs ``command`` with ``args`` and returns its captured stdout.

        Args:
            command: Logical command name, resolved through ``tool_paths``.
            args: Arguments passed verbatim to the process.

        Returns:
            Raw standard output of the process.

        Raises:
            ExternalToolError: If the process cannot be started, times out or exits non-zero.
        """
        cmd = [self.resolve(command), *args]
        logger.debug("Running %s", " ".join(cmd))

        try:
            result = subprocess.run(cmd, capture_output=True, check=True, timeout=self.timeout)
        except subprocess.CalledProcessError as e:
            stderr = _decode(e.stderr)
            logger.error("%s exited with code %d: %s", command, e.returncode, stderr.strip())
            raise ExternalToolError(
                f"{command} exited with code {e.returncode}: {stderr.strip()}",
                command=command,
                returncode=e.returncode,
                stderr=stderr,
            ) from e
        except subprocess.TimeoutExpired as e:
            stderr = _decode(e.stderr)
            logger.error("%s timed out after %s seconds", command, self.timeout)
            raise ExternalToolError(
                f"{command} timed out after {self.timeout} seconds", command=command, stderr=stderr
            ) from e
        except OSError as e:
            logger.error("Could not start %s: %s", command, e)
            raise ExternalToolError(f"Could not start {command}: {e}", command=command) from e

        stderr = _decode(result.stderr)
        if stderr.strip():
            logger.debug("%s stderr: %s", command, stderr.strip())
        return result.stdout


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="replace")
