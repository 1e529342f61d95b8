"""Tests for media upload/delete rules and local storage."""

import pytest

from cutroom.exceptions import ForbiddenError, InvalidFieldValueError, MissingRequiredFieldError
from cutroom.services.media_service import MediaService
from cutroom.services.storage_service import LocalStorageService

ALLOWED = ["video/mp4", "video/quicktime", "video/webm", "video/x-matroska"]


@pytest.fixture
def storage(tmp_path):
    return LocalStorageService(str(tmp_path), "http://localhost:8000/api/media")


@pytest.fixture
def media(storage):
    return MediaService(storage, allowed_content_types=ALLOWED)


class TestAuthorizeUpload:
    def test_guest_may_upload_video(self, media, guest):
        upload = media.authorize_upload(guest, "take 1.mp4", "video/mp4")

        assert upload.storage_key.startswith("media/guest-123/")
        assert upload.storage_key.endswith(".mp4")
        assert upload.upload_url == f"http://localhost:8000/api/media/upload/{upload.storage_key}"

    def test_key_is_namespaced_by_identity(self, media, alice):
        upload = media.authorize_upload(alice, "clip.mov", "video/quicktime")

        assert upload.storage_key.startswith("media/alice_example.com/")

    def test_non_video_is_rejected(self, media, alice):
        with pytest.raises(InvalidFieldValueError):
            media.authorize_upload(alice, "notes.pdf", "application/pdf")

    def test_filename_is_required(self, media, alice):
        with pytest.raises(MissingRequiredFieldError):
            media.authorize_upload(alice, "", "video/mp4")


class TestDeleteMedia:
    def test_verified_user_deletes_existing_keys(self, media, storage, alice):
        storage.upload_file_from_bytes("media/x/1.mp4", b"data")

        deleted = media.delete_media(alice, ["media/x/1.mp4", "media/x/missing.mp4"])

        assert deleted == ["media/x/1.mp4"]
        assert not storage.file_exists("media/x/1.mp4")

    def test_guest_cannot_delete(self, media, storage, guest):
        storage.upload_file_from_bytes("media/x/1.mp4", b"data")

        with pytest.raises(ForbiddenError):
            media.delete_media(guest, ["media/x/1.mp4"])
        assert storage.file_exists("media/x/1.mp4")

    def test_empty_key_list(self, media, alice):
        with pytest.raises(MissingRequiredFieldError):
            media.delete_media(alice, [])


class TestLocalStorage:
    def test_key_cannot_escape_storage_root(self, storage):
        with pytest.raises(InvalidFieldValueError):
            storage.upload_file_from_bytes("../outside.mp4", b"data")
