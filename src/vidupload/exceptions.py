"""Exception hierarchy for vidupload."""

GENERIC_FAILURE_MESSAGE = "Unable to upload video"


class VidUploadError(Exception):
    """Base exception for all vidupload errors."""

    @property
    def user_message(self) -> str:
        """Message that is safe to show to the client."""
        return GENERIC_FAILURE_MESSAGE


class ValidationError(VidUploadError):
    """Raised when the request itself is invalid. Never retried."""

    @property
    def user_message(self) -> str:
        return str(self)


class UnsupportedMediaTypeError(ValidationError):
    """Raised when the declared media type is not the supported video container."""

    def __init__(self, media_type: str, supported: str):
        super().__init__(f"Unsupported media type '{media_type}'. Only '{supported}' uploads are accepted.")
        self.media_type = media_type
        self.supported = supported


class InvalidIdentifierError(ValidationError):
    """Raised when a video or user identifier cannot be parsed."""

    pass


class VideoNotFoundError(ValidationError):
    """Raised when the referenced video record does not exist."""

    pass


class NotOwnerError(ValidationError):
    """Raised when the requester does not own the video record."""

    pass


class ExternalToolError(VidUploadError):
    """Raised when ffmpeg/ffprobe fails to start, exits non-zero or produces unparseable output."""

    def __init__(self, message: str, command: str | None = None, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class StorageIOError(VidUploadError):
    """Raised when the local scratch filesystem fails while staging an upload."""

    pass


class ObjectStoreError(VidUploadError):
    """Raised when writing to the object store fails."""

    pass


class RandomnessError(VidUploadError):
    """Raised when the operating system randomness source is unavailable."""

    pass


class ConfigError(VidUploadError):
    """Raised when there's an error loading or parsing configuration."""

    pass
