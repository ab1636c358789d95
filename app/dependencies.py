from typing import Annotated

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import RequestCache, cache
from app.database import get_db
from app.errors import UnauthorizedError
from app.repositories.sql import (
    SqlArticleRepository,
    SqlCommentRepository,
    SqlFavoriteRepository,
    SqlFollowRepository,
    SqlUserRepository,
)
from app.security import user_id_from_token
from app.services.article_service import ArticleListParams, ArticleService
from app.services.auth_service import AuthService
from app.services.comment_service import CommentService
from app.services.profile_service import ProfileService
from app.services.user_service import UserService

# auto_error=False so a missing header reaches our own 401 / anonymous handling.
bearer_scheme = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]
Credentials = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def _resolve_user_id(credentials: HTTPAuthorizationCredentials, db: AsyncSession) -> int:
    user_id = user_id_from_token(credentials.credentials)
    if user_id is None:
        raise UnauthorizedError()
    if await SqlUserRepository(db).get_by_id(user_id) is None:
        raise UnauthorizedError("User not found")
    return user_id


async def get_current_user_id(credentials: Credentials, db: DbSession) -> int:
    """Id of the authenticated user; 401 when the bearer token is missing or bad."""
    if credentials is None:
        raise UnauthorizedError("Missing bearer token")
    return await _resolve_user_id(credentials, db)


async def get_optional_user_id(credentials: Credentials, db: DbSession) -> int | None:
    """
    Like ``get_current_user_id`` for endpoints open to anonymous callers:
    no header means anonymous, a bad token is still rejected.
    """
    if credentials is None:
        return None
    return await _resolve_user_id(credentials, db)


CurrentUserId = Annotated[int, Depends(get_current_user_id)]
OptionalUserId = Annotated[int | None, Depends(get_optional_user_id)]


# ---------------------------------------------------------------------------
# Query parameters
# ---------------------------------------------------------------------------

def article_list_params(
    limit: int | None = Query(
        None,
        description="Number of articles to return (default 20, clamped to 1..100).",
    ),
    offset: int | None = Query(
        None,
        description="Number of articles to skip (default 0).",
    ),
    tag: str | None = Query(None, description="Filter by tag (substring match)."),
    author: str | None = Query(None, description="Filter by author username."),
    favorited: str | None = Query(
        None, description="Only articles favorited by this username."
    ),
) -> ArticleListParams:
    """
    Collect the listing query string.  FastAPI rejects non-integer
    ``limit``/``offset`` with 422; the listing engine applies defaults
    and bounds.
    """
    return ArticleListParams(
        limit=limit, offset=offset, tag=tag, author=author, favorited=favorited
    )


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------

def get_article_service(db: DbSession) -> ArticleService:
    return ArticleService(
        articles=SqlArticleRepository(db),
        users=SqlUserRepository(db),
        favorites=SqlFavoriteRepository(db),
        follows=SqlFollowRepository(db),
        cache=RequestCache(cache, db),
    )


def get_comment_service(db: DbSession) -> CommentService:
    return CommentService(
        comments=SqlCommentRepository(db),
        articles=SqlArticleRepository(db),
        users=SqlUserRepository(db),
    )


def get_user_service(db: DbSession) -> UserService:
    return UserService(SqlUserRepository(db), cache=RequestCache(cache, db))


def get_profile_service(db: DbSession) -> ProfileService:
    return ProfileService(SqlUserRepository(db), SqlFollowRepository(db))


def get_auth_service(db: DbSession) -> AuthService:
    return AuthService(SqlUserRepository(db))
