from .config import UploadConfig, clear_config_cache, load_config
from .exceptions import (
    ConfigError,
    ExternalToolError,
    InvalidIdentifierError,
    NotOwnerError,
    ObjectStoreError,
    RandomnessError,
    StorageIOError,
    UnsupportedMediaTypeError,
    ValidationError,
    VideoNotFoundError,
    VidUploadError,
)
from .keys import generate_key
from .normalize import normalize_for_streaming
from .pipeline import UploadOrchestrator, UploadRequest, VideoUploadService
from .probe import Orientation, StreamDescriptor, classify_orientation, probe_streams
from .process import CommandRunner, ProcessRunner
from .progress import configure, set_progress, set_verbose
from .records import InMemoryVideoStore, VideoRecord, VideoStore
from .staging import StagedFile, StagingManager
from .storage import S3ObjectStore

__all__ = [
    # Pipeline
    "UploadOrchestrator",
    "UploadRequest",
    "VideoUploadService",
    # Components
    "ProcessRunner",
    "CommandRunner",
    "StagingManager",
    "StagedFile",
    "S3ObjectStore",
    "normalize_for_streaming",
    "classify_orientation",
    "probe_streams",
    "generate_key",
    "Orientation",
    "StreamDescriptor",
    # Metadata
    "VideoRecord",
    "VideoStore",
    "InMemoryVideoStore",
    # Exceptions
    "VidUploadError",
    "ValidationError",
    "UnsupportedMediaTypeError",
    "InvalidIdentifierError",
    "VideoNotFoundError",
    "NotOwnerError",
    "ExternalToolError",
    "StorageIOError",
    "ObjectStoreError",
    "RandomnessError",
    "ConfigError",
    # Configuration
    "UploadConfig",
    "load_config",
    "clear_config_cache",
    "configure",
    "set_verbose",
    "set_progress",
]
