"""Configuration loader for vidupload.

Settings come from, in increasing priority:

1. Defaults on ``UploadConfig``
2. ``vidupload.toml`` in the current directory, or the ``[tool.vidupload]`` table of ``pyproject.toml``
3. ``VIDUPLOAD_*`` environment variables (e.g. ``VIDUPLOAD_S3_BUCKET``)
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, fields
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import tomllib

from vidupload.exceptions import ConfigError

ENV_PREFIX = "VIDUPLOAD_"
DEFAULT_CHUNK_SIZE = 1024 * 1024


@dataclass
class UploadConfig:
    """Settings for the upload pipeline.

    Attributes:
        s3_bucket: Destination bucket for processed videos.
        s3_region: AWS region of the bucket, also used to build public URLs.
        scratch_dir: Directory for staged temp files. System temp dir when unset.
        ffmpeg_path: Executable used for the fast start remux.
        ffprobe_path: Executable used for stream inspection.
        supported_media_type: The only media type accepted for upload.
        chunk_size: Read size in bytes when copying the upload to scratch storage.
        tool_timeout: Seconds before an external tool is abandoned. None waits forever.
    """

    s3_bucket: str = ""
    s3_region: str = "us-east-1"
    scratch_dir: Path | None = None
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    supported_media_type: str = "video/mp4"
    chunk_size: int = DEFAULT_CHUNK_SIZE
    tool_timeout: float | None = None

    def __post_init__(self):
        if self.scratch_dir is not None:
            self.scratch_dir = Path(self.scratch_dir)
        if self.chunk_size <= 0:
            raise ConfigError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.tool_timeout is not None and self.tool_timeout <= 0:
            raise ConfigError(f"tool_timeout must be positive, got {self.tool_timeout}")

    @property
    def resolved_scratch_dir(self) -> Path:
        """Scratch directory, falling back to the system temp dir."""
        return self.scratch_dir if self.scratch_dir is not None else Path(tempfile.gettempdir())

    def ensure_scratch_dir(self) -> Path:
        """Create the scratch directory if it does not exist yet."""
        path = self.resolved_scratch_dir
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def tool_paths(self) -> dict[str, str]:
        return {"ffmpeg": self.ffmpeg_path, "ffprobe": self.ffprobe_path}


_CONVERTERS: dict[str, Any] = {
    "s3_bucket": str,
    "s3_region": str,
    "scratch_dir": Path,
    "ffmpeg_path": str,
    "ffprobe_path": str,
    "supported_media_type": str,
    "chunk_size": int,
    "tool_timeout": float,
}


def _find_config_file(cwd: Path | None = None) -> Path | None:
    """Find the configuration file in the given (or current) directory.

    Looks for:
    1. vidupload.toml
    2. pyproject.toml

    Returns:
        Path to config file if found, None otherwise.
    """
    cwd = cwd or Path.cwd()

    vidupload_toml = cwd / "vidupload.toml"
    if vidupload_toml.exists():
        return vidupload_toml

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.exists():
        return pyproject_toml

    return None


def _load_toml(path: Path) -> dict[str, Any]:
    """Load and parse a TOML file."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in config file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e


def _extract_config(data: dict[str, Any], filename: str) -> dict[str, Any]:
    """Extract the vidupload section from parsed TOML data."""
    if filename == "vidupload.toml":
        return data
    elif filename == "pyproject.toml":
        tool = data.get("tool", {})
        if not isinstance(tool, dict):
            raise ConfigError("[tool] in pyproject.toml must be a table")
        section = tool.get("vidupload", {})
        if not isinstance(section, dict):
            raise ConfigError("[tool.vidupload] in pyproject.toml must be a table")
        return section
    return {}


def _from_environment(environ: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for name in _CONVERTERS:
        raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None and raw != "":
            values[name] = raw
    return values


def _coerce(values: dict[str, Any]) -> dict[str, Any]:
    known = {f.name for f in fields(UploadConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown vidupload config keys: {', '.join(unknown)}")

    coerced: dict[str, Any] = {}
    for name, value in values.items():
        try:
            coerced[name] = _CONVERTERS[name](value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value for '{name}': {value!r}") from e
    return coerced


def build_config(file_values: dict[str, Any], environ: Mapping[str, str]) -> UploadConfig:
    """Merge file settings with environment overrides into an UploadConfig."""
    if not isinstance(file_values, dict):
        raise ConfigError(f"vidupload config must be a table, got {type(file_values).__name__}")
    merged = {**file_values, **_from_environment(environ)}
    return UploadConfig(**_coerce(merged))


@lru_cache(maxsize=1)
def _get_cached_config() -> UploadConfig:
    config_path = _find_config_file()
    file_values = _extract_config(_load_toml(config_path), config_path.name) if config_path else {}
    return build_config(file_values, os.environ)


def load_config() -> UploadConfig:
    """Get the current configuration.

    Returns:
        The cached UploadConfig.
    """
    return _get_cached_config()


def clear_config_cache() -> None:
    """Clear the configuration cache. Useful for testing."""
    _get_cached_config.cache_clear()
