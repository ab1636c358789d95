"""
Ownership guard shared by article update/delete and comment delete.

Both helpers are read-only: they take the result of a lookup the caller
already performed and either return it unchanged or raise.
"""
from typing import Protocol, TypeVar

from app.errors import ForbiddenError, NotFoundError
from app.models import Article, Comment

COMMENT_NOT_FOUND = "Comment not found"
COMMENT_FORBIDDEN_DELETE = "You do not have permission to delete this comment"


class Owned(Protocol):
    author_id: int


T = TypeVar("T", bound=Owned)


def assert_owner(
    resource: T | None,
    user_id: int,
    *,
    not_found: str,
    forbidden: str,
) -> T:
    """Return *resource* if *user_id* authored it."""
    if resource is None:
        raise NotFoundError(not_found)
    if resource.author_id != user_id:
        raise ForbiddenError(forbidden)
    return resource


def assert_comment_owner(comment: Comment | None, article: Article, user_id: int) -> Comment:
    """
    Like ``assert_owner`` but also binds the comment to the article named
    in the request path; a comment under another article is reported as
    missing rather than forbidden.
    """
    if comment is None or comment.article_id != article.id:
        raise NotFoundError(COMMENT_NOT_FOUND)
    return assert_owner(
        comment, user_id, not_found=COMMENT_NOT_FOUND, forbidden=COMMENT_FORBIDDEN_DELETE
    )
