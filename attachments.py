"""Attachment classification for posts.

Stored uploads are classified by filename extension only, then the thread
renderer picks an inline image, video, audio or download branch from the
result.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote

UPLOAD_URL_PREFIX = os.environ.get("UPLOAD_URL_PREFIX", "/static/uploads").rstrip("/")


def env_bool(key: str, default: bool = False) -> bool:
    raw = os.environ.get(key)
    if raw is None:
        return default
    return str(raw).strip().lower() in ("1", "true", "yes", "on")


CASE_INSENSITIVE_EXTENSIONS = env_bool("ATTACHMENT_CASE_INSENSITIVE")

IMAGE_EXTENSIONS = frozenset({"jpg", "png", "gif", "webp"})
VIDEO_EXTENSIONS = frozenset({"mp4", "webm"})
AUDIO_EXTENSIONS = frozenset({"mp3"})

# value of the upload input's accept attribute
ACCEPTED_UPLOAD_EXTENSIONS = ".jpg,.gif,.png,.mp3,.mp4,.webm,.webp"

# audio is always served as mpeg, whatever the extension
AUDIO_MIME_TYPE = "audio/mpeg"


class AttachmentKind(str, Enum):
    NONE = "none"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    GENERIC = "generic"


@dataclass(frozen=True)
class Attachment:
    kind: AttachmentKind
    path: str | None = None
    extension: str = ""

    @property
    def mime_type(self) -> str | None:
        if self.kind == AttachmentKind.VIDEO:
            return f"video/{self.extension}"
        if self.kind == AttachmentKind.AUDIO:
            return AUDIO_MIME_TYPE
        return None

    @property
    def url(self) -> str | None:
        if self.path is None:
            return None
        return resolve_upload_url(self.path)


NO_ATTACHMENT = Attachment(AttachmentKind.NONE)


def extension_of(path: str) -> str:
    """Text after the final dot, or "" when the name has no dot."""
    if "." not in path:
        return ""
    return path.rsplit(".", 1)[-1]


def classify(path: str | None, case_insensitive: bool | None = None) -> Attachment:
    if path is None:
        return NO_ATTACHMENT
    if case_insensitive is None:
        case_insensitive = CASE_INSENSITIVE_EXTENSIONS

    extension = extension_of(path)
    key = extension.lower() if case_insensitive else extension

    if key in IMAGE_EXTENSIONS:
        kind = AttachmentKind.IMAGE
    elif key in VIDEO_EXTENSIONS:
        kind = AttachmentKind.VIDEO
    elif key in AUDIO_EXTENSIONS:
        kind = AttachmentKind.AUDIO
    else:
        kind = AttachmentKind.GENERIC
    return Attachment(kind=kind, path=path, extension=key)


def resolve_upload_url(name: str) -> str:
    return f"{UPLOAD_URL_PREFIX}/{quote(name)}"
