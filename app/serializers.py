"""
Explicit ORM-to-response mapping.

Every response body is built here from model instances plus the
viewer-dependent flags computed by the services, so the password hash and
other internal columns can never leak through an implicit dump.
"""
from datetime import datetime

from app.models import Article, Comment, User


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def profile_to_dict(user: User, following: bool = False) -> dict:
    return {
        "username": user.username,
        "bio": user.bio,
        "image": user.image,
        "following": following,
    }


def user_to_dict(user: User) -> dict:
    """The authenticated user's own account view."""
    return {
        "id": user.id,
        "email": user.email,
        "username": user.username,
        "bio": user.bio,
        "image": user.image,
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    }


def article_to_dict(
    article: Article,
    favorited: bool = False,
    favorites_count: int = 0,
    following: bool = False,
) -> dict:
    """Serialise an Article whose ``author`` relationship is loaded."""
    return {
        "id": article.id,
        "slug": article.slug,
        "title": article.title,
        "description": article.description,
        "body": article.body,
        "tagList": article.tags,
        "createdAt": _iso(article.created_at),
        "updatedAt": _iso(article.updated_at),
        "favorited": favorited,
        "favoritesCount": favorites_count,
        "author": profile_to_dict(article.author, following),
    }


def comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "body": comment.body,
        "articleId": comment.article_id,
        "createdAt": _iso(comment.created_at),
        "updatedAt": _iso(comment.updated_at),
        "author": profile_to_dict(comment.author),
    }
