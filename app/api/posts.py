from typing import List

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.services import posts as post_service
from app.storage import BlobStore, get_blob_store
from schemas.post import PostCreatedResponse, PostDeletedResponse, PostListResponse, PostResponse

router = APIRouter()


def to_response(post) -> PostResponse:
    return PostResponse(
        id=post.id,
        text=post.text or "",
        images=post_service.load_images(post),
        created_at=post.created_at,
        expires_at=post.expires_at,
    )


@router.get("", response_model=PostListResponse)
async def list_posts(db: AsyncSession = Depends(get_db)):
    posts = await post_service.list_live_posts(db)
    return PostListResponse(posts=[to_response(p) for p in posts])


@router.post("", response_model=PostCreatedResponse, status_code=201)
async def create_post(
    text: str | None = Form(None),
    images: List[UploadFile] | None = File(None),
    db: AsyncSession = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    submission = await post_service.read_submission(text, images)
    post = await post_service.create_post(db, blobs, submission)
    return PostCreatedResponse(post=to_response(post))


@router.delete("/{post_id}", response_model=PostDeletedResponse)
async def delete_post(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    await post_service.delete_post(db, blobs, post_id)
    return PostDeletedResponse(message="Post deleted successfully")
