# whs_core/incidents/media.py
from __future__ import annotations

import mimetypes
import uuid
from uuid import UUID

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils import timezone

from whs_core.cases.ports import MediaUpload


class MediaRejected(ValueError):
    """Upload does not satisfy the type/size policy."""


def check_upload(upload: MediaUpload) -> None:
    allowed = [t.lower() for t in settings.WHS_MEDIA_ALLOWED_TYPES]
    content_type = (upload.content_type or "").lower()
    if content_type not in allowed:
        raise MediaRejected(f"Unsupported media type {upload.content_type!r}; allowed: {', '.join(allowed)}.")
    if upload.size == 0:
        raise MediaRejected("Empty upload.")
    if upload.size > settings.WHS_MEDIA_MAX_BYTES:
        raise MediaRejected(
            f"Upload is {upload.size} bytes; the limit is {settings.WHS_MEDIA_MAX_BYTES} bytes."
        )


class StorageMediaStore:
    """
    Saves incident photos through Django's default storage backend.
    Returns the storage name, which is what Incident.photo_ref keeps.
    """

    @staticmethod
    def save(*, subject_id: UUID, upload: MediaUpload) -> str:
        check_upload(upload)
        ext = mimetypes.guess_extension(upload.content_type) or ""
        if not ext and "." in upload.filename:
            ext = "." + upload.filename.rsplit(".", 1)[-1].lower()
        stamp = timezone.now().strftime("%Y%m%d%H%M%S")
        name = f"incidents/{subject_id}/{stamp}-{uuid.uuid4().hex[:8]}{ext}"
        return default_storage.save(name, ContentFile(upload.content))
