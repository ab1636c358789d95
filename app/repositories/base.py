"""Abstract repository interfaces: one narrow port per entity.

Services depend only on these classes; ``app.repositories.sql`` holds the
SQLAlchemy implementations and the test suite provides in-memory doubles.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from app.models import Article, Comment, User


class DuplicateKeyError(Exception):
    """A write violated a uniqueness constraint (username, email, slug, ...)."""


@dataclass(frozen=True)
class ArticleFilter:
    """Conjunction of optional listing conditions; ``None`` means unconstrained."""

    tag: Optional[str] = None
    author: Optional[str] = None
    favorited_by_id: Optional[int] = None


@dataclass(frozen=True)
class FavoriteStats:
    count: int = 0
    favorited: bool = False


class UserRepository(ABC):
    @abstractmethod
    async def get_by_id(self, user_id: int) -> User | None: ...

    @abstractmethod
    async def get_by_username(self, username: str) -> User | None: ...

    @abstractmethod
    async def get_by_email(self, email: str) -> User | None: ...

    @abstractmethod
    async def create(self, user: User) -> User:
        """Persist *user*; raises DuplicateKeyError on username/email clash."""

    @abstractmethod
    async def update(self, user: User, fields: dict[str, Any]) -> User:
        """Apply *fields* to *user*; raises DuplicateKeyError on clash."""


class ArticleRepository(ABC):
    @abstractmethod
    async def get_by_slug(self, slug: str) -> Article | None:
        """Return the article with its author loaded, or None."""

    @abstractmethod
    async def find_by_filter(
        self, article_filter: ArticleFilter, limit: int, offset: int
    ) -> list[Article]:
        """Return one page, newest first, authors loaded."""

    @abstractmethod
    async def count_by_filter(self, article_filter: ArticleFilter) -> int: ...

    @abstractmethod
    async def create(self, article: Article) -> Article: ...

    @abstractmethod
    async def update(self, article: Article, fields: dict[str, Any]) -> Article: ...

    @abstractmethod
    async def delete(self, article: Article) -> None:
        """Delete *article* together with its comments and favorites."""


class CommentRepository(ABC):
    @abstractmethod
    async def get_by_id(self, comment_id: int) -> Comment | None: ...

    @abstractmethod
    async def list_by_article(self, article_id: int) -> list[Comment]:
        """Return the article's comments newest first, authors loaded."""

    @abstractmethod
    async def create(self, comment: Comment) -> Comment: ...

    @abstractmethod
    async def delete(self, comment: Comment) -> None: ...


class FavoriteRepository(ABC):
    @abstractmethod
    async def add(self, user_id: int, article_id: int) -> None:
        """Insert the edge; a no-op when it already exists."""

    @abstractmethod
    async def remove(self, user_id: int, article_id: int) -> None:
        """Delete the edge; a no-op when it does not exist."""

    @abstractmethod
    async def exists(self, user_id: int, article_id: int) -> bool: ...

    @abstractmethod
    async def count_for_article(self, article_id: int) -> int: ...

    @abstractmethod
    async def stats_for_articles(
        self, article_ids: list[int], viewer_id: int | None
    ) -> dict[int, FavoriteStats]:
        """Favorite count and viewer state for a page of articles in one query."""


class FollowRepository(ABC):
    @abstractmethod
    async def add(self, follower_id: int, following_id: int) -> None: ...

    @abstractmethod
    async def remove(self, follower_id: int, following_id: int) -> None: ...

    @abstractmethod
    async def exists(self, follower_id: int, following_id: int) -> bool: ...

    @abstractmethod
    async def followed_among(self, follower_id: int, user_ids: list[int]) -> set[int]:
        """Subset of *user_ids* that *follower_id* follows."""
