from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PostResponse(CamelModel):
    id: str
    text: str = ""
    images: List[str] = []
    created_at: datetime
    expires_at: datetime

    @field_serializer("created_at", "expires_at")
    def _serialize_utc(self, value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()


class PostCreatedResponse(CamelModel):
    post: PostResponse


class PostListResponse(CamelModel):
    posts: List[PostResponse]


class PostDeletedResponse(CamelModel):
    message: str


class CleanupResponse(CamelModel):
    message: str
    posts_deleted: int
    images_deleted: int
