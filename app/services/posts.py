import json
import logging
from dataclasses import dataclass, field

from fastapi import UploadFile
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.errors import DependencyError, NotFoundError, ValidationError
from app.storage import BlobStore
from app.utils import clock
from app.utils.media import allowed_image_types, normalize_content_type
from models.post import Post

logger = logging.getLogger("snip.posts")


@dataclass
class ImageUpload:
    filename: str
    content_type: str
    data: bytes


@dataclass
class PostSubmission:
    text: str | None = None
    images: list[ImageUpload] = field(default_factory=list)


@dataclass
class SweepResult:
    posts_deleted: int = 0
    images_deleted: int = 0
    failures: int = 0


def load_images(post: Post) -> list[str]:
    try:
        images = json.loads(post.images or "[]")
    except ValueError:
        logger.warning("POST_IMAGES_CORRUPT post=%s", post.id)
        return []
    return [url for url in images if isinstance(url, str) and url]


def _check_image(filename: str, content_type: str, size: int | None) -> None:
    if size is not None and size > settings.MAX_IMAGE_BYTES:
        limit_mb = settings.MAX_IMAGE_BYTES // (1024 * 1024)
        raise ValidationError(f"File size must be less than {limit_mb}MB ({filename})")
    if content_type not in allowed_image_types():
        raise ValidationError("Invalid file type. Allowed: jpg, jpeg, png, gif, svg, heic")


async def read_submission(text: str | None, files: list[UploadFile] | None) -> PostSubmission:
    # 先用解析器给出的大小拒绝超大文件，再读取内容
    files = [f for f in (files or []) if f is not None and (f.filename or f.size)]
    images: list[ImageUpload] = []
    for upload in files:
        filename = upload.filename or "upload"
        content_type = normalize_content_type(upload.content_type)
        _check_image(filename, content_type, upload.size)
        data = await upload.read()
        _check_image(filename, content_type, len(data))
        images.append(ImageUpload(filename=filename, content_type=content_type, data=data))
    return PostSubmission(text=text, images=images)


def validate_submission(submission: PostSubmission) -> None:
    if not submission.text and not submission.images:
        raise ValidationError("Either text or images must be provided")
    if settings.MAX_IMAGES_PER_POST and len(submission.images) > settings.MAX_IMAGES_PER_POST:
        raise ValidationError(f"At most {settings.MAX_IMAGES_PER_POST} images are allowed per post")
    for image in submission.images:
        _check_image(image.filename, image.content_type, len(image.data))


async def _delete_images(blobs: BlobStore, urls: list[str], *, post_id: str | None = None) -> int:
    deleted = 0
    for url in urls:
        try:
            await blobs.delete(url)
            deleted += 1
        except Exception:
            logger.warning("IMAGE_DELETE_FAILED post=%s url=%s", post_id or "-", url, exc_info=True)
    return deleted


async def create_post(db: AsyncSession, blobs: BlobStore, submission: PostSubmission) -> Post:
    validate_submission(submission)

    image_urls: list[str] = []
    try:
        for image in submission.images:
            image_urls.append(await blobs.put(image.filename, image.data, image.content_type))
    except Exception as exc:
        logger.exception("IMAGE_UPLOAD_FAILED uploaded=%d total=%d", len(image_urls), len(submission.images))
        await _delete_images(blobs, image_urls)
        raise DependencyError("Failed to create post") from exc

    now = clock.utcnow()
    post = Post(
        text=submission.text or "",
        images=json.dumps(image_urls),
        created_at=now,
        expires_at=now + clock.post_ttl(),
    )
    try:
        db.add(post)
        await db.commit()
        await db.refresh(post)
    except Exception as exc:
        logger.exception("POST_WRITE_FAILED images=%d", len(image_urls))
        await db.rollback()
        await _delete_images(blobs, image_urls)
        raise DependencyError("Failed to create post") from exc
    logger.info("POST_CREATED post=%s images=%d expires_at=%s", post.id, len(image_urls), post.expires_at.isoformat())
    return post


async def list_live_posts(db: AsyncSession) -> list[Post]:
    try:
        res = await db.execute(
            select(Post)
            .where(Post.expires_at > clock.utcnow())
            .order_by(Post.created_at.desc())
        )
        return list(res.scalars().all())
    except Exception as exc:
        logger.exception("POST_LIST_FAILED")
        raise DependencyError("Failed to fetch posts") from exc


async def delete_post_record(db: AsyncSession, post_id: str) -> bool:
    # 幂等：记录已被其他路径删除时返回 False
    res = await db.execute(delete(Post).where(Post.id == post_id))
    await db.commit()
    return (res.rowcount or 0) > 0


async def purge_post(db: AsyncSession, blobs: BlobStore, post_id: str, image_urls: list[str]) -> tuple[bool, int]:
    images_deleted = await _delete_images(blobs, image_urls, post_id=post_id)
    return await delete_post_record(db, post_id), images_deleted


async def delete_post(db: AsyncSession, blobs: BlobStore, post_id: str) -> None:
    try:
        post = (await db.execute(select(Post).where(Post.id == post_id))).scalar_one_or_none()
    except Exception as exc:
        logger.exception("POST_LOOKUP_FAILED post=%s", post_id)
        raise DependencyError("Failed to delete post") from exc
    if not post:
        raise NotFoundError()
    try:
        removed, images_deleted = await purge_post(db, blobs, post.id, load_images(post))
    except Exception as exc:
        logger.exception("POST_DELETE_FAILED post=%s", post_id)
        raise DependencyError("Failed to delete post") from exc
    if not removed:
        raise NotFoundError()
    logger.info("POST_DELETED post=%s images_deleted=%d", post_id, images_deleted)


async def sweep_expired_posts(db: AsyncSession, blobs: BlobStore) -> SweepResult:
    try:
        res = await db.execute(select(Post).where(Post.expires_at < clock.utcnow()))
        # 先取出快照，回滚会使会话中的实例失效
        expired = [(p.id, load_images(p)) for p in res.scalars().all()]
    except Exception as exc:
        logger.exception("CLEANUP_QUERY_FAILED")
        raise DependencyError("Cleanup failed") from exc

    result = SweepResult()
    for post_id, image_urls in expired:
        try:
            removed, images_deleted = await purge_post(db, blobs, post_id, image_urls)
        except Exception:
            logger.exception("CLEANUP_POST_FAILED post=%s", post_id)
            await db.rollback()
            result.failures += 1
            continue
        result.images_deleted += images_deleted
        if removed:
            result.posts_deleted += 1
    logger.info(
        "CLEANUP_DONE expired=%d posts_deleted=%d images_deleted=%d failures=%d",
        len(expired),
        result.posts_deleted,
        result.images_deleted,
        result.failures,
    )
    if result.failures:
        logger.error(
            "CLEANUP_PARTIAL posts_deleted=%d images_deleted=%d failures=%d",
            result.posts_deleted,
            result.images_deleted,
            result.failures,
        )
        # 部分成功：保留已完成的计数
        raise DependencyError(
            "Cleanup failed",
            extra={"postsDeleted": result.posts_deleted, "imagesDeleted": result.images_deleted},
        )
    return result
