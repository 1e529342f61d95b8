from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from cutroom.config import Settings, get_settings
from cutroom.exceptions import InvalidFieldValueError


class StorageService(Protocol):
    def generate_upload_url(
        self, storage_key: str, content_type: str, expires_minutes: int = 60
    ) -> tuple[str, datetime]: ...

    def get_public_url(self, storage_key: str) -> str: ...

    def upload_file_from_bytes(self, storage_key: str, data: bytes) -> str: ...

    def delete_file(self, storage_key: str) -> bool: ...

    def file_exists(self, storage_key: str) -> bool: ...


class LocalStorageService:
    """Local file storage for development without GCS."""

    def __init__(self, base_path: str, base_url: str) -> None:
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.base_url = base_url.rstrip("/")

    def _get_full_path(self, storage_key: str) -> Path:
        full_path = (self.base_path / storage_key).resolve()
        if not full_path.is_relative_to(self.base_path):
            raise InvalidFieldValueError(field="storage_key", value=storage_key)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        return full_path

    def generate_upload_url(
        self, storage_key: str, content_type: str, expires_minutes: int = 60
    ) -> tuple[str, datetime]:
        """Generate upload URL - returns local API endpoint."""
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
        return f"{self.base_url}/upload/{storage_key}", expires_at

    def get_public_url(self, storage_key: str) -> str:
        return f"{self.base_url}/files/{storage_key}"

    def upload_file_from_bytes(self, storage_key: str, data: bytes) -> str:
        full_path = self._get_full_path(storage_key)
        full_path.write_bytes(data)
        return self.get_public_url(storage_key)

    def delete_file(self, storage_key: str) -> bool:
        full_path = self._get_full_path(storage_key)
        if full_path.exists():
            full_path.unlink()
            return True
        return False

    def file_exists(self, storage_key: str) -> bool:
        return self._get_full_path(storage_key).exists()

    def get_file_path(self, storage_key: str) -> Path:
        """Get the actual file path for serving."""
        return self._get_full_path(storage_key)


class GCSStorageService:
    """Google Cloud Storage service for production."""

    def __init__(self, bucket_name: str, project_id: str = "") -> None:
        from google.auth import compute_engine, default
        from google.auth.transport import requests as auth_requests
        from google.cloud import storage

        self._storage = storage
        self._compute_engine = compute_engine
        self.bucket_name = bucket_name
        self.project_id = project_id
        self._client: storage.Client | None = None
        self._bucket: storage.Bucket | None = None
        self._credentials, _ = default()
        self._auth_request = auth_requests.Request()

    @property
    def client(self):
        if self._client is None:
            if self.project_id:
                self._client = self._storage.Client(project=self.project_id)
            else:
                self._client = self._storage.Client()
        return self._client

    @property
    def bucket(self):
        if self._bucket is None:
            self._bucket = self.client.bucket(self.bucket_name)
        return self._bucket

    def _signing_kwargs(self) -> dict:
        # Cloud Run credentials hold no private key; sign through the IAM API instead
        if not isinstance(self._credentials, self._compute_engine.Credentials):
            return {}
        if not self._credentials.valid:
            self._credentials.refresh(self._auth_request)
        return {
            "service_account_email": self._credentials.service_account_email,
            "access_token": self._credentials.token,
        }

    def generate_upload_url(
        self, storage_key: str, content_type: str, expires_minutes: int = 60
    ) -> tuple[str, datetime]:
        """Generate a V4 signed URL for uploading a file directly to GCS."""
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
        upload_url = self.bucket.blob(storage_key).generate_signed_url(
            version="v4",
            expiration=timedelta(minutes=expires_minutes),
            method="PUT",
            content_type=content_type,
            **self._signing_kwargs(),
        )
        return upload_url, expires_at

    def get_public_url(self, storage_key: str) -> str:
        return f"https://storage.googleapis.com/{self.bucket_name}/{storage_key}"

    def upload_file_from_bytes(self, storage_key: str, data: bytes) -> str:
        self.bucket.blob(storage_key).upload_from_string(data)
        return self.get_public_url(storage_key)

    def delete_file(self, storage_key: str) -> bool:
        blob = self.bucket.blob(storage_key)
        if blob.exists():
            blob.delete()
            return True
        return False

    def file_exists(self, storage_key: str) -> bool:
        return self.bucket.blob(storage_key).exists()


def build_storage_service(settings: Settings) -> StorageService:
    # Use LocalStorageService or GCSStorageService based on config
    if settings.use_local_storage:
        return LocalStorageService(settings.local_storage_path, settings.local_storage_base_url)
    return GCSStorageService(settings.gcs_bucket_name, settings.gcs_project_id)


@lru_cache
def get_storage_service() -> StorageService:
    return build_storage_service(get_settings())
