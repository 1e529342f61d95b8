"""Authorization rules around media objects in storage."""

import logging
import re
import uuid

from cutroom.exceptions import ForbiddenError, InvalidFieldValueError, MissingRequiredFieldError
from cutroom.schemas.identity import Identity
from cutroom.schemas.media import UploadUrlResponse
from cutroom.services.storage_service import StorageService

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def storage_namespace(identity: Identity) -> str:
    return _UNSAFE_KEY_CHARS.sub("_", identity.id)


class MediaService:
    def __init__(
        self,
        storage: StorageService,
        allowed_content_types: list[str],
        expires_minutes: int = 60,
    ) -> None:
        self.storage = storage
        self.allowed_content_types = allowed_content_types
        self.expires_minutes = expires_minutes

    def authorize_upload(
        self, identity: Identity, filename: str, content_type: str
    ) -> UploadUrlResponse:
        """Hand out an upload URL for one video file.

        Guests may upload too. Keys are namespaced by the uploader.
        """
        if not filename:
            raise MissingRequiredFieldError("filename")
        if content_type not in self.allowed_content_types:
            raise InvalidFieldValueError(
                f"Invalid file type: {content_type}. Only video files are allowed.",
                field="content_type",
            )

        ext = filename.rsplit(".", 1)[-1] if "." in filename else ""
        storage_key = f"media/{storage_namespace(identity)}/{uuid.uuid4()}"
        if ext:
            storage_key = f"{storage_key}.{_UNSAFE_KEY_CHARS.sub('', ext)}"

        upload_url, expires_at = self.storage.generate_upload_url(
            storage_key, content_type, self.expires_minutes
        )
        return UploadUrlResponse(
            upload_url=upload_url,
            storage_key=storage_key,
            public_url=self.storage.get_public_url(storage_key),
            expires_at=expires_at,
        )

    def delete_media(self, identity: Identity, storage_keys: list[str]) -> list[str]:
        """Delete stored objects. Returns the keys that existed and were removed."""
        if identity.is_guest or not identity.verified:
            raise ForbiddenError("Guests cannot delete media")
        if not storage_keys:
            raise MissingRequiredFieldError("storage_keys")

        deleted = [key for key in storage_keys if self.storage.delete_file(key)]
        logger.info(f"User {identity.id} deleted {len(deleted)} of {len(storage_keys)} media object(s)")
        return deleted
