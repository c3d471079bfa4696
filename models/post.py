import uuid

from sqlalchemy import Column, String, DateTime, Text
from app.database import Base


def new_post_id() -> str:
    return uuid.uuid4().hex


class Post(Base):
    __tablename__ = "posts"

    id = Column(String(32), primary_key=True, default=new_post_id)
    text = Column(Text, default="")
    images = Column(Text, default="[]")  # JSON array string, upload order
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    # 过期时间索引：检索过滤、清理任务与 TTL 淘汰都依赖它
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
