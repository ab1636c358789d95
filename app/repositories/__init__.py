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

__all__ = [
    "ArticleFilter",
    "ArticleRepository",
    "CommentRepository",
    "DuplicateKeyError",
    "FavoriteRepository",
    "FavoriteStats",
    "FollowRepository",
    "UserRepository",
]
