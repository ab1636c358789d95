"""
Article listing tests - filters, pagination metadata, result messages and
per-viewer favorite / following enrichment through the HTTP surface.
"""
import math

import pytest
from httpx import AsyncClient


async def _post(client: AsyncClient, headers: dict, title: str, tags: list[str] | None = None):
    resp = await client.post("/api/v1/articles", headers=headers, json={
        "title": title,
        "description": "desc",
        "body": "body",
        "tagList": tags or [],
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["article"]


# ---------------------------------------------------------------------------
# Empty table
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_empty(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/articles?limit=20&offset=0")
    assert resp.status_code == 200
    body = resp.json()
    assert body["data"] == []
    assert body["meta"] == {
        "total": 0,
        "page": 1,
        "limit": 20,
        "totalPages": 1,
        "hasNextPage": False,
        "hasPrevPage": False,
    }
    assert body["message"] == "No articles found matching the filters"


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_pagination_meta_and_order(async_client: AsyncClient, signup):
    headers = await signup("pager")
    for i in range(5):
        await _post(async_client, headers, f"Paged {i}")

    resp = await async_client.get("/api/v1/articles?limit=2&offset=2")
    body = resp.json()
    assert [a["title"] for a in body["data"]] == ["Paged 2", "Paged 1"]
    assert body["meta"] == {
        "total": 5,
        "page": 2,
        "limit": 2,
        "totalPages": 3,
        "hasNextPage": True,
        "hasPrevPage": True,
    }
    assert body["message"] == "Retrieved 2 articles successfully"


@pytest.mark.asyncio
async def test_newest_first(async_client: AsyncClient, signup):
    headers = await signup("orderer")
    for title in ("Oldest", "Middle", "Newest"):
        await _post(async_client, headers, title)
    body = (await async_client.get("/api/v1/articles")).json()
    assert [a["title"] for a in body["data"]] == ["Newest", "Middle", "Oldest"]


@pytest.mark.asyncio
async def test_offset_past_end(async_client: AsyncClient, signup):
    headers = await signup("overshoot")
    await _post(async_client, headers, "Only One")

    body = (await async_client.get("/api/v1/articles?offset=10")).json()
    assert body["data"] == []
    assert body["meta"]["total"] == 1
    assert body["meta"]["hasNextPage"] is False
    assert body["meta"]["hasPrevPage"] is True
    assert body["message"] == "No articles found for the current offset"


@pytest.mark.asyncio
@pytest.mark.parametrize("limit,offset", [(1, 0), (2, 1), (3, 3), (4, 5), (100, 0)])
async def test_meta_invariants(async_client: AsyncClient, signup, limit, offset):
    headers = await signup(f"inv_{limit}_{offset}")
    total = 5
    for i in range(total):
        await _post(async_client, headers, f"Invariant {i}")

    meta = (await async_client.get(f"/api/v1/articles?limit={limit}&offset={offset}")).json()["meta"]
    assert meta["totalPages"] == max(1, math.ceil(total / limit))
    assert meta["hasNextPage"] == (offset + limit < total)
    assert meta["page"] == offset // limit + 1


@pytest.mark.asyncio
async def test_limit_and_offset_are_clamped(async_client: AsyncClient):
    body = (await async_client.get("/api/v1/articles?limit=1000&offset=-5")).json()
    assert body["meta"]["limit"] == 100
    assert body["meta"]["hasPrevPage"] is False

    body = (await async_client.get("/api/v1/articles?limit=0")).json()
    assert body["meta"]["limit"] == 1


@pytest.mark.asyncio
async def test_non_numeric_limit_returns_422(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/articles?limit=lots")
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_filter_by_tag(async_client: AsyncClient, signup):
    headers = await signup("tagger")
    await _post(async_client, headers, "Py", ["python", "web"])
    await _post(async_client, headers, "Rust", ["rust"])

    body = (await async_client.get("/api/v1/articles?tag=python")).json()
    assert [a["title"] for a in body["data"]] == ["Py"]
    assert body["meta"]["total"] == 1


@pytest.mark.asyncio
async def test_filter_by_author(async_client: AsyncClient, signup):
    alice = await signup("alice_l")
    bob = await signup("bob_l")
    await _post(async_client, alice, "By Alice")
    await _post(async_client, bob, "By Bob")

    body = (await async_client.get("/api/v1/articles?author=bob_l")).json()
    assert [a["title"] for a in body["data"]] == ["By Bob"]

    body = (await async_client.get("/api/v1/articles?author=nobody")).json()
    assert body["data"] == []
    assert body["message"] == "No articles found matching the filters"


@pytest.mark.asyncio
async def test_filter_by_favorited(async_client: AsyncClient, signup):
    author = await signup("fav_author")
    fan = await signup("fav_fan")
    await _post(async_client, author, "Loved")
    await _post(async_client, author, "Ignored")
    await async_client.post("/api/v1/articles/loved/favorite", headers=fan)

    body = (await async_client.get("/api/v1/articles?favorited=fav_fan")).json()
    assert [a["title"] for a in body["data"]] == ["Loved"]


@pytest.mark.asyncio
async def test_filter_by_unknown_favorited_user(async_client: AsyncClient, signup):
    headers = await signup("somebody")
    await _post(async_client, headers, "Present")

    body = (await async_client.get("/api/v1/articles?favorited=ghost")).json()
    assert body["data"] == []
    assert body["meta"]["total"] == 0
    assert body["meta"]["page"] == 1
    assert body["message"] == "No articles found for the specified favorited user"


@pytest.mark.asyncio
async def test_filters_combine(async_client: AsyncClient, signup):
    alice = await signup("combo_a")
    bob = await signup("combo_b")
    await _post(async_client, alice, "A python", ["python"])
    await _post(async_client, alice, "A go", ["go"])
    await _post(async_client, bob, "B python", ["python"])

    body = (await async_client.get("/api/v1/articles?tag=python&author=combo_a")).json()
    assert [a["title"] for a in body["data"]] == ["A python"]


# ---------------------------------------------------------------------------
# Viewer enrichment
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_viewer_sees_own_favorites(async_client: AsyncClient, signup):
    """A favorites X, then lists as A: X shows favorited=true, count=1."""
    author = await signup("enrich_author")
    viewer = await signup("enrich_viewer")
    await _post(async_client, author, "Article X")
    await _post(async_client, author, "Article Y")
    await async_client.post("/api/v1/articles/article-x/favorite", headers=viewer)
    await async_client.post("/api/v1/articles/article-x/favorite", headers=author)
    await async_client.post("/api/v1/profiles/enrich_author/follow", headers=viewer)

    body = (await async_client.get("/api/v1/articles", headers=viewer)).json()
    by_slug = {a["slug"]: a for a in body["data"]}
    assert by_slug["article-x"]["favorited"] is True
    assert by_slug["article-x"]["favoritesCount"] == 2
    assert by_slug["article-y"]["favorited"] is False
    assert by_slug["article-y"]["favoritesCount"] == 0
    assert by_slug["article-x"]["author"]["following"] is True

    anon = (await async_client.get("/api/v1/articles")).json()
    anon_x = next(a for a in anon["data"] if a["slug"] == "article-x")
    assert anon_x["favorited"] is False
    assert anon_x["favoritesCount"] == 2
    assert anon_x["author"]["following"] is False
