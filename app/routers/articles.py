from typing import Annotated

from fastapi import APIRouter, Depends

from app.dependencies import (
    CurrentUserId,
    OptionalUserId,
    article_list_params,
    get_article_service,
)
from app.schemas import ArticleCreate, ArticleUpdate, PaginatedResponse
from app.services.article_service import ArticleListParams, ArticleService

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])

Service = Annotated[ArticleService, Depends(get_article_service)]

@router.get("", response_model=PaginatedResponse)
async def list_articles(
    service: Service,
    viewer_id: OptionalUserId,
    params: ArticleListParams = Depends(article_list_params),
):
    return await service.list_articles(params, viewer_id)

@router.post("", status_code=201)
async def create_article(data: ArticleCreate, user_id: CurrentUserId, service: Service):
    return await service.create_article(data, user_id)

@router.get("/{slug}")
async def get_article(slug: str, viewer_id: OptionalUserId, service: Service):
    return await service.get_article(slug, viewer_id)

@router.put("/{slug}")
async def update_article(slug: str, data: ArticleUpdate, user_id: CurrentUserId, service: Service):
    return await service.update_article(slug, data, user_id)

@router.delete("/{slug}")
async def delete_article(slug: str, user_id: CurrentUserId, service: Service):
    return await service.delete_article(slug, user_id)

@router.post("/{slug}/favorite")
async def favorite_article(slug: str, user_id: CurrentUserId, service: Service):
    return await service.set_favorite(slug, user_id, on=True)

@router.delete("/{slug}/favorite")
async def unfavorite_article(slug: str, user_id: CurrentUserId, service: Service):
    return await service.set_favorite(slug, user_id, on=False)
