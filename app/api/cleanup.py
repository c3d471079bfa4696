from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.services.posts import sweep_expired_posts
from app.storage import BlobStore, get_blob_store
from schemas.post import CleanupResponse

router = APIRouter()


# 由定时任务调用（如 crontab 或平台自带的 cron）
@router.get("", response_model=CleanupResponse)
async def cleanup(db: AsyncSession = Depends(get_db), blobs: BlobStore = Depends(get_blob_store)):
    result = await sweep_expired_posts(db, blobs)
    return CleanupResponse(
        message="Cleanup completed",
        posts_deleted=result.posts_deleted,
        images_deleted=result.images_deleted,
    )
