from typing import Annotated

from fastapi import APIRouter, Depends

from app.dependencies import CurrentUserId, get_comment_service
from app.schemas import CommentCreate
from app.services.comment_service import CommentService

router = APIRouter(prefix="/api/v1/articles/{slug}/comments", tags=["comments"])

Service = Annotated[CommentService, Depends(get_comment_service)]

@router.get("")
async def list_comments(slug: str, service: Service):
    return await service.list_comments(slug)

@router.post("", status_code=201)
async def add_comment(slug: str, data: CommentCreate, user_id: CurrentUserId, service: Service):
    return await service.add_comment(slug, data, user_id)

@router.delete("/{comment_id}")
async def delete_comment(slug: str, comment_id: int, user_id: CurrentUserId, service: Service):
    return await service.delete_comment(slug, comment_id, user_id)
