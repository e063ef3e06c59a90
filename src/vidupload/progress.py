from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, TypeVar

from tqdm import tqdm

__all__ = ["configure", "set_verbose", "set_progress", "log", "progress_iter"]

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass
class _ProgressConfig:
    verbose: bool = False
    progress: bool = False


_CONFIG = _ProgressConfig()


def configure(*, verbose: bool | None = None, progress: bool | None = None) -> None:
    """Configure pipeline logging verbosity and progress bars."""
    if verbose is not None:
        _CONFIG.verbose = bool(verbose)
    if progress is not None:
        _CONFIG.progress = bool(progress)


def set_verbose(value: bool) -> None:
    """Enable or disable verbose step logging."""
    _CONFIG.verbose = bool(value)


def set_progress(value: bool) -> None:
    """Enable or disable progress bars while staging uploads."""
    _CONFIG.progress = bool(value)


def log(message: str, *args: object) -> None:
    """Log a pipeline step at INFO if verbose mode is enabled, DEBUG otherwise."""
    logger.log(logging.INFO if _CONFIG.verbose else logging.DEBUG, message, *args)


def progress_iter(
    iterable: Iterable[T],
    *,
    desc: str | None = None,
    total: int | None = None,
    unit: str = "it",
) -> Iterable[T]:
    """Return an iterator with an optional progress bar."""
    if _CONFIG.progress:
        return tqdm(iterable, desc=desc, total=total, unit=unit)
    return iterable
