"""Upload processing pipeline.

``UploadOrchestrator`` runs the ordered steps for a single upload:

    validate media type -> stage (copy + fast start remux) -> classify orientation
    -> generate key -> store object -> build public URL

``VideoUploadService`` wraps it with the metadata store: it resolves and authorizes the
video record first and attaches the resulting URL afterwards. A failure at any step aborts
the remaining ones. An object that was stored before a later failure is not removed.
"""

from __future__ import annotations

import functools
import logging
import uuid
from dataclasses import dataclass
from typing import BinaryIO, Callable, Protocol

from vidupload.config import UploadConfig
from vidupload.exceptions import (
    ConfigError,
    InvalidIdentifierError,
    NotOwnerError,
    UnsupportedMediaTypeError,
    ValidationError,
)
from vidupload.keys import generate_key
from vidupload.normalize import normalize_for_streaming
from vidupload.probe import Orientation, classify_orientation
from vidupload.process import CommandRunner, ProcessRunner
from vidupload.progress import log
from vidupload.records import VideoRecord, VideoStore
from vidupload.staging import StagingManager
from vidupload.storage import S3ObjectStore

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    def put(self, key: str, body: BinaryIO, content_type: str) -> None: ...

    def public_url(self, key: str) -> str: ...


@dataclass
class UploadRequest:
    """A single uploaded video, consumed once by the orchestrator.

    Attributes:
        stream: Readable binary stream with the uploaded bytes.
        media_type: Declared Content-Type, parameters allowed (``video/mp4; codecs=avc1``).
        extension: Extension of the original filename, e.g. ``.mp4``.
    """

    stream: BinaryIO
    media_type: str
    extension: str = ""


def parse_media_type(value: str | None) -> str:
    """Returns the lowercased ``type/subtype`` of a Content-Type value without parameters.

    Raises:
        ValidationError: If no well-formed media type is present.
    """
    media_type = (value or "").split(";", 1)[0].strip().lower()
    main, _, sub = media_type.partition("/")
    if not main or not sub or "/" in sub or any(c.isspace() for c in media_type):
        raise ValidationError(f"Invalid media type '{value}'")
    return media_type


def parse_identifier(value: str | uuid.UUID, kind: str = "video") -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as e:
        raise InvalidIdentifierError(f"Invalid {kind} ID '{value}'") from e


class UploadOrchestrator:
    """Turns an upload stream into a stored, fast start MP4 and returns its public URL."""

    def __init__(
        self,
        stager: StagingManager,
        object_store: ObjectStore,
        classifier: Callable[[str], Orientation | None],
        supported_media_type: str = "video/mp4",
        key_generator: Callable[[Orientation | None], str] = generate_key,
    ):
        self.stager = stager
        self.object_store = object_store
        self.classifier = classifier
        try:
            self.supported_media_type = parse_media_type(supported_media_type)
        except ValidationError as e:
            raise ConfigError(f"Invalid supported media type: {supported_media_type!r}") from e
        self.key_generator = key_generator

    @classmethod
    def from_config(
        cls,
        config: UploadConfig,
        object_store: ObjectStore | None = None,
        runner: CommandRunner | None = None,
    ) -> UploadOrchestrator:
        """Wires the default components: ffmpeg/ffprobe through one runner and S3 storage."""
        runner = runner or ProcessRunner(tool_paths=config.tool_paths, timeout=config.tool_timeout)
        stager = StagingManager(
            normalizer=functools.partial(normalize_for_streaming, runner=runner),
            scratch_dir=config.ensure_scratch_dir(),
            chunk_size=config.chunk_size,
        )
        return cls(
            stager=stager,
            object_store=object_store or S3ObjectStore.from_config(config),
            classifier=functools.partial(classify_orientation, runner=runner),
            supported_media_type=config.supported_media_type,
        )

    def validate(self, request: UploadRequest) -> str:
        """Returns the normalized media type of ``request`` if it is the supported one."""
        media_type = parse_media_type(request.media_type)
        if media_type != self.supported_media_type:
            raise UnsupportedMediaTypeError(media_type, self.supported_media_type)
        return media_type

    def process(self, request: UploadRequest) -> str:
        """Runs the full pipeline for ``request``.

        Returns:
            Public URL of the stored video.

        Raises:
            ValidationError: If the media type is not supported. Raised before anything touches disk.
            ExternalToolError: If ffmpeg or ffprobe fails.
            StorageIOError: If staging on the local filesystem fails.
            RandomnessError: If no storage key can be generated.
            ObjectStoreError: If the upload to the object store fails.
        """
        media_type = self.validate(request)
        logger.debug("Processing %s upload (extension=%r)", media_type, request.extension)

        with self.stager.stage(request.stream) as staged:
            orientation = self.classifier(str(staged.path))
            key = self.key_generator(orientation)
            log("Uploading %s as %s (orientation=%s)", staged.path, key, orientation.value if orientation else None)
            self.object_store.put(key, staged.handle, media_type)

        url = self.object_store.public_url(key)
        logger.info("Processed upload stored at %s", url)
        return url


class VideoUploadService:
    """Attaches processed uploads to video records owned by the requesting user."""

    def __init__(self, store: VideoStore, orchestrator: UploadOrchestrator):
        self.store = store
        self.orchestrator = orchestrator

    def get_owned_video(self, video_id: str | uuid.UUID, user_id: str | uuid.UUID) -> VideoRecord:
        """Loads a video record and checks that ``user_id`` owns it.

        Raises:
            InvalidIdentifierError: If either ID is malformed.
            VideoNotFoundError: If the record does not exist.
            NotOwnerError: If the record belongs to someone else.
        """
        video_uuid = parse_identifier(video_id, "video")
        user_uuid = parse_identifier(user_id, "user")
        video = self.store.get_video(video_uuid)
        if video.user_id != user_uuid:
            raise NotOwnerError("You are not authorized to modify this video")
        return video

    def upload_video(self, video_id: str | uuid.UUID, user_id: str | uuid.UUID, request: UploadRequest) -> VideoRecord:
        """Processes ``request`` and records the resulting URL on the video.

        The record is only updated after the object is stored; any earlier failure leaves it untouched.
        """
        video = self.get_owned_video(video_id, user_id)
        logger.info("Uploading video %s for user %s", video.id, video.user_id)

        video.video_url = self.orchestrator.process(request)
        self.store.update_video(video)
        return video
