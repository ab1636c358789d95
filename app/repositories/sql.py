"""
SQLAlchemy implementations of the repository interfaces.

Design notes
------------
- Every repository wraps the request's ``AsyncSession``; they flush but
  never commit.  The transaction boundary is owned by ``get_db``.
- Authors are loaded with ``joinedload`` wherever an entity is returned to
  a service, because every response embeds the author profile.
- Edge inserts (favorite, follow) use ``INSERT ... ON CONFLICT DO NOTHING``
  on PostgreSQL and SQLite so concurrent identical toggles are harmless.
- A unique violation raised by a flush is re-raised as ``DuplicateKeyError``;
  other ``IntegrityError``s propagate unchanged.
"""
from typing import Any

from sqlalchemy import and_, case, delete, exists, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.models import Article, Comment, Favorite, Follow, User, utcnow
from app.repositories.base import (
    ArticleFilter,
    ArticleRepository,
    CommentRepository,
    DuplicateKeyError,
    FavoriteRepository,
    FavoriteStats,
    FollowRepository,
    UserRepository,
)

_INSERT_IGNORE_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


_UNIQUE_VIOLATION_SQLSTATE = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    """True for a UNIQUE / primary-key clash; False for FK, NOT NULL or CHECK failures."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is None:
        sqlstate = getattr(getattr(orig, "__cause__", None), "sqlstate", None)
    if sqlstate is not None:
        return sqlstate == _UNIQUE_VIOLATION_SQLSTATE
    message = str(orig).lower()
    return "unique constraint" in message or "duplicate key" in message


class _SqlRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _flush(self) -> None:
        try:
            await self._session.flush()
        except IntegrityError as exc:
            if not _is_unique_violation(exc):
                raise
            raise DuplicateKeyError(str(exc.orig)) from exc

    async def _insert_ignore(self, model, **values) -> None:
        dialect = self._session.get_bind().dialect.name
        insert = _INSERT_IGNORE_DIALECTS.get(dialect)
        if insert is not None:
            stmt = insert(model).values(**values).on_conflict_do_nothing()
            await self._session.execute(stmt)
            return
        # Generic fallback: check, then insert.
        conditions = [getattr(model, k) == v for k, v in values.items()]
        found = await self._session.execute(select(exists().where(*conditions)))
        if not found.scalar():
            self._session.add(model(**values))
            await self._flush()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class SqlUserRepository(_SqlRepository, UserRepository):
    async def get_by_id(self, user_id: int) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_username(self, username: str) -> User | None:
        result = await self._session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        result = await self._session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def create(self, user: User) -> User:
        self._session.add(user)
        await self._flush()
        return user

    async def update(self, user: User, fields: dict[str, Any]) -> User:
        for field, value in fields.items():
            setattr(user, field, value)
        user.updated_at = utcnow()
        await self._flush()
        return user


# ---------------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------------

def _filter_conditions(article_filter: ArticleFilter) -> list:
    conditions = []
    if article_filter.tag:
        conditions.append(Article.tag_list.contains(article_filter.tag, autoescape=True))
    if article_filter.author is not None:
        conditions.append(Article.author.has(User.username == article_filter.author))
    if article_filter.favorited_by_id is not None:
        conditions.append(
            Article.favorites.any(Favorite.user_id == article_filter.favorited_by_id)
        )
    return conditions


class SqlArticleRepository(_SqlRepository, ArticleRepository):
    async def get_by_slug(self, slug: str) -> Article | None:
        q = select(Article).where(Article.slug == slug).options(joinedload(Article.author))
        result = await self._session.execute(q)
        return result.scalar_one_or_none()

    async def find_by_filter(
        self, article_filter: ArticleFilter, limit: int, offset: int
    ) -> list[Article]:
        q = select(Article).options(joinedload(Article.author))
        conditions = _filter_conditions(article_filter)
        if conditions:
            q = q.where(and_(*conditions))
        # id breaks created_at ties so pages never overlap.
        q = q.order_by(Article.created_at.desc(), Article.id.desc()).offset(offset).limit(limit)
        result = await self._session.execute(q)
        return list(result.scalars().all())

    async def count_by_filter(self, article_filter: ArticleFilter) -> int:
        q = select(func.count()).select_from(Article)
        conditions = _filter_conditions(article_filter)
        if conditions:
            q = q.where(and_(*conditions))
        return (await self._session.execute(q)).scalar_one()

    async def create(self, article: Article) -> Article:
        self._session.add(article)
        await self._flush()
        return article

    async def update(self, article: Article, fields: dict[str, Any]) -> Article:
        for field, value in fields.items():
            setattr(article, field, value)
        article.updated_at = utcnow()
        await self._flush()
        return article

    async def delete(self, article: Article) -> None:
        await self._session.execute(delete(Comment).where(Comment.article_id == article.id))
        await self._session.execute(delete(Favorite).where(Favorite.article_id == article.id))
        await self._session.delete(article)
        await self._flush()


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

class SqlCommentRepository(_SqlRepository, CommentRepository):
    async def get_by_id(self, comment_id: int) -> Comment | None:
        q = select(Comment).where(Comment.id == comment_id).options(joinedload(Comment.author))
        result = await self._session.execute(q)
        return result.scalar_one_or_none()

    async def list_by_article(self, article_id: int) -> list[Comment]:
        q = (
            select(Comment)
            .where(Comment.article_id == article_id)
            .options(joinedload(Comment.author))
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        )
        result = await self._session.execute(q)
        return list(result.scalars().all())

    async def create(self, comment: Comment) -> Comment:
        self._session.add(comment)
        await self._flush()
        return comment

    async def delete(self, comment: Comment) -> None:
        await self._session.delete(comment)
        await self._flush()


# ---------------------------------------------------------------------------
# Edges
# ---------------------------------------------------------------------------

class SqlFavoriteRepository(_SqlRepository, FavoriteRepository):
    async def add(self, user_id: int, article_id: int) -> None:
        await self._insert_ignore(Favorite, user_id=user_id, article_id=article_id)

    async def remove(self, user_id: int, article_id: int) -> None:
        await self._session.execute(
            delete(Favorite).where(
                Favorite.user_id == user_id, Favorite.article_id == article_id
            )
        )

    async def exists(self, user_id: int, article_id: int) -> bool:
        q = select(
            exists().where(Favorite.user_id == user_id, Favorite.article_id == article_id)
        )
        return bool((await self._session.execute(q)).scalar())

    async def count_for_article(self, article_id: int) -> int:
        q = select(func.count()).select_from(Favorite).where(Favorite.article_id == article_id)
        return (await self._session.execute(q)).scalar_one()

    async def stats_for_articles(
        self, article_ids: list[int], viewer_id: int | None
    ) -> dict[int, FavoriteStats]:
        if not article_ids:
            return {}
        columns = [Favorite.article_id, func.count().label("total")]
        if viewer_id is not None:
            columns.append(
                func.max(case((Favorite.user_id == viewer_id, 1), else_=0)).label("mine")
            )
        q = (
            select(*columns)
            .where(Favorite.article_id.in_(article_ids))
            .group_by(Favorite.article_id)
        )
        rows = (await self._session.execute(q)).all()
        return {
            row.article_id: FavoriteStats(
                count=row.total,
                favorited=bool(row.mine) if viewer_id is not None else False,
            )
            for row in rows
        }


class SqlFollowRepository(_SqlRepository, FollowRepository):
    async def add(self, follower_id: int, following_id: int) -> None:
        await self._insert_ignore(Follow, follower_id=follower_id, following_id=following_id)

    async def remove(self, follower_id: int, following_id: int) -> None:
        await self._session.execute(
            delete(Follow).where(
                Follow.follower_id == follower_id, Follow.following_id == following_id
            )
        )

    async def exists(self, follower_id: int, following_id: int) -> bool:
        q = select(
            exists().where(
                Follow.follower_id == follower_id, Follow.following_id == following_id
            )
        )
        return bool((await self._session.execute(q)).scalar())

    async def followed_among(self, follower_id: int, user_ids: list[int]) -> set[int]:
        if not user_ids:
            return set()
        q = select(Follow.following_id).where(
            Follow.follower_id == follower_id, Follow.following_id.in_(user_ids)
        )
        return set((await self._session.execute(q)).scalars().all())
