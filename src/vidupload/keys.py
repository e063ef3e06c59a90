from __future__ import annotations

import secrets

from vidupload.exceptions import RandomnessError
from vidupload.probe import Orientation

TOKEN_BYTES = 32
VIDEO_EXTENSION = ".mp4"


def random_token(nbytes: int = TOKEN_BYTES) -> str:
    """Returns ``nbytes`` of OS randomness, base64url-encoded without padding."""
    try:
        return secrets.token_urlsafe(nbytes)
    except (OSError, NotImplementedError) as e:
        raise RandomnessError(f"Randomness source unavailable: {e}") from e


def generate_key(orientation: Orientation | str | None) -> str:
    """Builds the object store key ``{orientation}/{token}.mp4``.

    An unclassified (None) orientation yields an empty prefix, i.e. ``/{token}.mp4``.
    Collisions are not checked against the store; 256 random bits make them negligible.
    """
    if isinstance(orientation, Orientation):
        prefix = orientation.value
    else:
        prefix = orientation or ""
    return f"{prefix}/{random_token()}{VIDEO_EXTENSION}"
