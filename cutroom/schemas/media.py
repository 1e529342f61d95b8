from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class UploadUrlRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    filename: str = Field(..., min_length=1)
    content_type: str = Field(..., min_length=1)


class UploadUrlResponse(BaseModel):
    upload_url: str
    storage_key: str
    public_url: str
    expires_at: datetime


class MediaDeleteRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    storage_keys: list[str] = Field(default_factory=list)


class MediaDeleteResponse(BaseModel):
    deleted: list[str]
