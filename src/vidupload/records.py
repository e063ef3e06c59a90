from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Protocol

from vidupload.exceptions import VideoNotFoundError


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class VideoRecord:
    """Metadata of a video owned by a user.

    Attributes:
        id: Identifier of the video.
        user_id: Identifier of the owner.
        title: Display title.
        description: Free-form description.
        thumbnail_url: Thumbnail location, if one was uploaded.
        video_url: Public URL of the processed video, None until an upload succeeds.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    title: str = ""
    description: str = ""
    thumbnail_url: str | None = None
    video_url: str | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)


class VideoStore(Protocol):
    """Metadata store the upload service reads and updates video records through."""

    def get_video(self, video_id: uuid.UUID) -> VideoRecord:
        """Returns the record or raises ``VideoNotFoundError``."""
        ...

    def update_video(self, record: VideoRecord) -> None: ...


class InMemoryVideoStore:
    """Thread-safe dict-backed VideoStore."""

    def __init__(self):
        self._records: dict[uuid.UUID, VideoRecord] = {}
        self._lock = threading.Lock()

    def create_video(self, user_id: uuid.UUID, title: str = "", description: str = "") -> VideoRecord:
        record = VideoRecord(id=uuid.uuid4(), user_id=user_id, title=title, description=description)
        with self._lock:
            self._records[record.id] = record
        return replace(record)

    def get_video(self, video_id: uuid.UUID) -> VideoRecord:
        with self._lock:
            record = self._records.get(video_id)
        if record is None:
            raise VideoNotFoundError(f"Video {video_id} not found")
        # Callers get a copy so unsaved edits don't leak into the store
        return replace(record)

    def update_video(self, record: VideoRecord) -> None:
        with self._lock:
            if record.id not in self._records:
                raise VideoNotFoundError(f"Video {record.id} not found")
            self._records[record.id] = replace(record, updated_at=_utc_now())
