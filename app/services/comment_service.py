"""
Comment service - comments hang off an article addressed by slug.

Any authenticated user may comment on an existing article; only the
comment's author may delete it, and only through the article it was
posted under.
"""
import logging

from app.errors import BadRequestError, NotFoundError
from app.models import Article, Comment
from app.repositories import ArticleRepository, CommentRepository, UserRepository
from app.schemas import CommentCreate
from app.serializers import comment_to_dict
from app.services.article_service import ARTICLE_NOT_FOUND
from app.services.ownership import assert_comment_owner

logger = logging.getLogger(__name__)

COMMENT_DELETED = "Comment deleted successfully"


class CommentService:
    def __init__(
        self,
        comments: CommentRepository,
        articles: ArticleRepository,
        users: UserRepository,
    ) -> None:
        self._comments = comments
        self._articles = articles
        self._users = users

    async def _article_or_404(self, slug: str) -> Article:
        article = await self._articles.get_by_slug(slug)
        if article is None:
            raise NotFoundError(ARTICLE_NOT_FOUND)
        return article

    async def add_comment(self, slug: str, data: CommentCreate, user_id: int) -> dict:
        article = await self._article_or_404(slug)
        author = await self._users.get_by_id(user_id)
        if author is None:
            raise BadRequestError("User not found")

        comment = Comment(body=data.body, article_id=article.id)
        comment.author = author
        await self._comments.create(comment)

        logger.info("Comment %d created on article %r by user %d", comment.id, slug, user_id)
        return {"comment": comment_to_dict(comment)}

    async def list_comments(self, slug: str) -> dict:
        article = await self._article_or_404(slug)
        comments = await self._comments.list_by_article(article.id)
        logger.info("Retrieved %d comments for article %r", len(comments), slug)
        return {"comments": [comment_to_dict(c) for c in comments]}

    async def delete_comment(self, slug: str, comment_id: int, user_id: int) -> dict:
        article = await self._article_or_404(slug)
        comment = assert_comment_owner(
            await self._comments.get_by_id(comment_id), article, user_id
        )
        await self._comments.delete(comment)

        logger.info("Comment %d deleted from article %r by user %d", comment_id, slug, user_id)
        return {"message": COMMENT_DELETED}
