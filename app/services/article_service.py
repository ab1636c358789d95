"""
Article service - business logic for the Article aggregate.

Design notes
------------
- The listing engine issues at most four statements per page: the
  ``favorited`` username lookup, a COUNT, the page SELECT (author joined)
  and one aggregate over favorites.  A fifth resolves which authors the
  viewer follows.  No per-article queries are issued.
- Anonymous listings go through the cache-aside pattern; every write that
  can change a listing calls ``cache.invalidate_listings()``, which the
  request cache defers until the transaction commits.
- Slugs are generated check-then-append: when the candidate slug belongs
  to another article, the clock's millisecond timestamp is appended.  Two
  identical titles created in the same millisecond can still collide; the
  unique constraint on ``articles.slug`` then surfaces as ``ConflictError``.
- The service flushes through its repositories but never commits; the
  transaction boundary is owned by the ``get_db`` dependency.
"""
import logging
import math
import re
import time
import unicodedata
from dataclasses import dataclass
from typing import Callable

from app.cache import RequestCache, listing_key
from app.config import settings
from app.errors import BadRequestError, ConflictError, NotFoundError
from app.models import Article
from app.repositories import (
    ArticleFilter,
    ArticleRepository,
    DuplicateKeyError,
    FavoriteRepository,
    FollowRepository,
    UserRepository,
)
from app.schemas import ArticleCreate, ArticleUpdate, PaginatedResponse, PaginationMeta
from app.serializers import article_to_dict
from app.services.ownership import assert_owner

logger = logging.getLogger(__name__)

ARTICLE_NOT_FOUND = "Article not found"
ARTICLE_FORBIDDEN_UPDATE = "You do not have permission to edit this article"
ARTICLE_FORBIDDEN_DELETE = "You do not have permission to delete this article"
SLUG_CONFLICT = "An article with this slug already exists"

MIN_LIMIT = 1

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9\s_-]")
_SLUG_SPACE_RE = re.compile(r"[\s_]+")
_SLUG_DASH_RE = re.compile(r"-+")


def slugify(text: str) -> str:
    """Return a URL-safe, lowercase ASCII slug derived from *text*."""
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = _SLUG_STRIP_RE.sub("", text.lower().strip())
    text = _SLUG_SPACE_RE.sub("-", text)
    return _SLUG_DASH_RE.sub("-", text).strip("-")


def join_tags(tags: list[str]) -> str:
    """Store tags as a comma-separated column; commas inside a tag are dropped."""
    cleaned = []
    for tag in tags:
        tag = tag.replace(",", "").strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return ",".join(cleaned)


def epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def clamp_paging(limit: int | None, offset: int | None) -> tuple[int, int]:
    """Apply the listing defaults and bounds to raw ``limit``/``offset`` values."""
    if limit is None:
        limit = settings.DEFAULT_PAGE_SIZE
    if offset is None:
        offset = 0
    return min(max(limit, MIN_LIMIT), settings.MAX_PAGE_SIZE), max(offset, 0)


def build_page_meta(total: int, limit: int, offset: int) -> PaginationMeta:
    return PaginationMeta(
        total=total,
        page=offset // limit + 1,
        limit=limit,
        total_pages=max(1, math.ceil(total / limit)),
        has_next_page=offset + limit < total,
        has_prev_page=offset > 0,
    )


def listing_message(total: int, returned: int) -> str:
    if returned:
        return f"Retrieved {returned} articles successfully"
    if total == 0:
        return "No articles found matching the filters"
    return "No articles found for the current offset"


@dataclass(frozen=True)
class ArticleListParams:
    """Raw listing inputs as received from the query string."""

    limit: int | None = None
    offset: int | None = None
    tag: str | None = None
    author: str | None = None
    favorited: str | None = None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class ArticleService:
    def __init__(
        self,
        articles: ArticleRepository,
        users: UserRepository,
        favorites: FavoriteRepository,
        follows: FollowRepository,
        cache: RequestCache | None = None,
        clock: Callable[[], int] = epoch_millis,
    ) -> None:
        self._articles = articles
        self._users = users
        self._favorites = favorites
        self._follows = follows
        self._cache = cache
        self._clock = clock

    # -- slugs -------------------------------------------------------------

    async def generate_slug(self, title: str, exclude_id: int | None = None) -> str:
        """
        Return a slug for *title* that no other article uses at the time of
        the lookup.  *exclude_id* is the article being renamed, whose own
        slug does not count as a collision.
        """
        slug = slugify(title) or "article"
        existing = await self._articles.get_by_slug(slug)
        if existing is not None and existing.id != exclude_id:
            slug = f"{slug}-{self._clock()}"
        return slug

    # -- views -------------------------------------------------------------

    async def _article_view(self, article: Article, viewer_id: int | None) -> dict:
        favorited = False
        following = False
        if viewer_id is not None:
            favorited = await self._favorites.exists(viewer_id, article.id)
            if article.author_id != viewer_id:
                following = await self._follows.exists(viewer_id, article.author_id)
        count = await self._favorites.count_for_article(article.id)
        return article_to_dict(article, favorited, count, following)

    async def _get_or_404(self, slug: str) -> Article:
        article = await self._articles.get_by_slug(slug)
        if article is None:
            raise NotFoundError(ARTICLE_NOT_FOUND)
        return article

    async def _invalidate(self) -> None:
        if self._cache is not None:
            await self._cache.invalidate_listings()

    # -- listing -----------------------------------------------------------

    async def list_articles(
        self, params: ArticleListParams, viewer_id: int | None = None
    ) -> PaginatedResponse:
        """
        Return one page of articles matching the optional tag / author /
        favorited filters, newest first, enriched for *viewer_id*.
        """
        limit, offset = clamp_paging(params.limit, params.offset)

        cache_key = None
        if viewer_id is None and self._cache is not None:
            cache_key = listing_key(limit, offset, params.tag, params.author, params.favorited)
            cached = await self._cache.get(cache_key)
            if cached:
                return PaginatedResponse(**cached)

        favorited_by_id = None
        if params.favorited:
            favoriting_user = await self._users.get_by_username(params.favorited)
            if favoriting_user is None:
                # No user, so no possible match: skip the count and page queries.
                return PaginatedResponse(
                    data=[],
                    meta=build_page_meta(0, limit, 0),
                    message="No articles found for the specified favorited user",
                )
            favorited_by_id = favoriting_user.id

        article_filter = ArticleFilter(
            tag=params.tag or None,
            author=params.author,
            favorited_by_id=favorited_by_id,
        )
        total = await self._articles.count_by_filter(article_filter)
        articles = await self._articles.find_by_filter(article_filter, limit, offset)

        stats = await self._favorites.stats_for_articles([a.id for a in articles], viewer_id)
        followed: set[int] = set()
        if viewer_id is not None:
            followed = await self._follows.followed_among(
                viewer_id, list({a.author_id for a in articles if a.author_id != viewer_id})
            )

        data = []
        for article in articles:
            article_stats = stats.get(article.id)
            data.append(
                article_to_dict(
                    article,
                    favorited=article_stats.favorited if article_stats else False,
                    favorites_count=article_stats.count if article_stats else 0,
                    following=article.author_id in followed,
                )
            )

        response = PaginatedResponse(
            data=data,
            meta=build_page_meta(total, limit, offset),
            message=listing_message(total, len(data)),
        )
        if cache_key is not None:
            await self._cache.set(cache_key, response.model_dump(), ttl=settings.CACHE_TTL_LIST)
        return response

    # -- CRUD --------------------------------------------------------------

    async def get_article(self, slug: str, viewer_id: int | None = None) -> dict:
        article = await self._get_or_404(slug)
        return {"article": await self._article_view(article, viewer_id)}

    async def create_article(self, data: ArticleCreate, user_id: int) -> dict:
        author = await self._users.get_by_id(user_id)
        if author is None:
            raise BadRequestError("User not found")

        article = Article(
            title=data.title,
            slug=await self.generate_slug(data.title),
            description=data.description,
            body=data.body,
            tag_list=join_tags(data.tag_list),
        )
        article.author = author
        try:
            await self._articles.create(article)
        except DuplicateKeyError as exc:
            raise ConflictError(SLUG_CONFLICT) from exc

        await self._invalidate()
        logger.info("Article %r created by user %d", article.slug, user_id)
        return {"article": article_to_dict(article)}

    async def update_article(self, slug: str, data: ArticleUpdate, user_id: int) -> dict:
        """
        Partially update an article owned by *user_id*.

        Only fields present in the payload are modified; the slug is
        regenerated only when the title actually changes.
        """
        article = assert_owner(
            await self._articles.get_by_slug(slug),
            user_id,
            not_found=ARTICLE_NOT_FOUND,
            forbidden=ARTICLE_FORBIDDEN_UPDATE,
        )

        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if "tag_list" in fields:
            fields["tag_list"] = join_tags(fields["tag_list"])
        if "title" in fields and fields["title"] != article.title:
            fields["slug"] = await self.generate_slug(fields["title"], exclude_id=article.id)

        try:
            await self._articles.update(article, fields)
        except DuplicateKeyError as exc:
            raise ConflictError(SLUG_CONFLICT) from exc

        await self._invalidate()
        logger.info("Article %r updated by user %d", article.slug, user_id)
        return {"article": await self._article_view(article, user_id)}

    async def delete_article(self, slug: str, user_id: int) -> dict:
        article = assert_owner(
            await self._articles.get_by_slug(slug),
            user_id,
            not_found=ARTICLE_NOT_FOUND,
            forbidden=ARTICLE_FORBIDDEN_DELETE,
        )
        snapshot = article_to_dict(article)
        await self._articles.delete(article)

        await self._invalidate()
        logger.info("Article %r deleted by user %d", slug, user_id)
        return {"article": snapshot}

    # -- favorites ---------------------------------------------------------

    async def set_favorite(self, slug: str, user_id: int, on: bool) -> dict:
        """Idempotently add (*on*) or remove the viewer's favorite edge."""
        article = await self._get_or_404(slug)
        if on:
            await self._favorites.add(user_id, article.id)
        else:
            await self._favorites.remove(user_id, article.id)

        await self._invalidate()
        logger.info(
            "User %d %s article %r", user_id, "favorited" if on else "unfavorited", slug
        )
        return {"article": await self._article_view(article, user_id)}
