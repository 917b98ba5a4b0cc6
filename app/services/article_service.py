"""
Article service — business logic for the Article aggregate.

Design notes
------------
- Detail reads go through the cache-aside pattern (Redis, falling back
  to the database); every write invalidates the detail entry.
- List reads are built by ``app.query``: the request criteria become a
  ``QuerySpec`` which is translated against ``_COLUMNS``.  The same
  WHERE clauses feed both the COUNT and the page SELECT.
- Tags are eager-loaded with ``selectinload`` wherever an article is
  serialised; the relationship itself is ``noload``.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import logging
import uuid
from typing import get_args

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.cache import ARTICLE_DETAIL_KEY, cache
from app.config import settings
from app.errors import NotFoundError
from app.models import Article, Category, Tag, User, utcnow
from app.query import FieldAllowList, HasEvery, build_query_spec, order_by_clauses, where_clauses
from app.schemas import (
    ArticleCreate,
    ArticleFilterField,
    ArticlePageQuery,
    ArticleResponse,
    ArticleSearchField,
    ArticleSortField,
    ArticleUpdate,
    PaginatedResponse,
)

logger = logging.getLogger(__name__)

ARTICLE_FIELDS = FieldAllowList(
    searchable=frozenset(get_args(ArticleSearchField)),
    filterable=frozenset(get_args(ArticleFilterField)),
    sortable=frozenset(get_args(ArticleSortField)),
)

_COLUMNS = {
    "title": Article.title,
    "description": Article.description,
    "author_id": Article.author_id,
    "category_id": Article.category_id,
    "tags": Article.tags,
    "likes": Article.likes,
    "visits": Article.visits,
    "created_at": Article.created_at,
    "updated_at": Article.updated_at,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _article_to_dict(article: Article) -> dict:
    """Serialise an Article (tags loaded) to a JSON-safe dict."""
    return ArticleResponse(
        id=article.id,
        title=article.title,
        description=article.description,
        md_url=article.md_url,
        tags=sorted(t.name for t in article.tags),
        likes=article.likes,
        visits=article.visits,
        author_id=article.author_id,
        category_id=article.category_id,
        created_at=article.created_at,
        updated_at=article.updated_at,
    ).model_dump(mode="json")


async def _resolve_tags(db: AsyncSession, tag_names: list[str]) -> list[Tag]:
    """
    Return Tag rows for each distinct name in *tag_names*, creating any
    that do not exist yet within the caller's transaction.
    """
    tags: list[Tag] = []
    for name in dict.fromkeys(tag_names):
        result = await db.execute(select(Tag).where(Tag.name == name))
        tag = result.scalar_one_or_none()
        if not tag:
            tag = Tag(name=name)
            db.add(tag)
            await db.flush()
        tags.append(tag)
    return tags


async def _ensure_references(
    db: AsyncSession,
    author_id: uuid.UUID | None = None,
    category_id: uuid.UUID | None = None,
) -> None:
    if author_id is not None and await db.get(User, author_id) is None:
        raise NotFoundError("User", author_id)
    if category_id is not None and await db.get(Category, category_id) is None:
        raise NotFoundError("Category", category_id)


async def _load_article(db: AsyncSession, article_id: uuid.UUID) -> Article:
    q = (
        select(Article)
        .where(Article.id == article_id)
        .options(selectinload(Article.tags))
    )
    article = (await db.execute(q)).scalar_one_or_none()
    if article is None:
        raise NotFoundError("Article", article_id)
    return article


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_article_page(db: AsyncSession, query: ArticlePageQuery) -> PaginatedResponse:
    """
    Return one page of articles matching the search/filter/tags criteria
    of *query*, sorted by its order criteria.

    Two SQL statements are issued: a COUNT over the matching rows and the
    page SELECT with LIMIT/OFFSET and tags loaded.
    """
    spec = build_query_spec(
        ARTICLE_FIELDS,
        offset=query.offset,
        limit=query.limit,
        search=query.search,
        filter=query.filter,
        order=query.order,
    )
    if query.tags:
        spec.where["tags"] = HasEvery(tuple(query.tags))

    clauses = where_clauses(spec, _COLUMNS)

    count_q = select(func.count()).select_from(Article).where(*clauses)
    total: int = (await db.execute(count_q)).scalar_one()

    page_q = (
        select(Article)
        .where(*clauses)
        .options(selectinload(Article.tags))
        .order_by(*order_by_clauses(spec, _COLUMNS))
        .offset(spec.offset)
        .limit(spec.limit)
    )
    articles = (await db.execute(page_q)).scalars().all()

    return PaginatedResponse(
        items=[_article_to_dict(a) for a in articles],
        total=total,
        offset=spec.offset,
        limit=spec.limit,
    )


async def get_article(db: AsyncSession, article_id: uuid.UUID) -> dict:
    """Return the article identified by *article_id*, cached for CACHE_TTL_DETAIL."""
    cache_key = ARTICLE_DETAIL_KEY.format(article_id)
    cached = await cache.get(cache_key)
    if cached:
        return cached

    data = _article_to_dict(await _load_article(db, article_id))
    await cache.set(cache_key, data, ttl=settings.CACHE_TTL_DETAIL)
    return data


async def create_article(db: AsyncSession, data: ArticleCreate) -> dict:
    """Create a new article; the author and the category must already exist."""
    await _ensure_references(db, data.author_id, data.category_id)

    article = Article(
        title=data.title,
        description=data.description,
        md_url=data.md_url,
        author_id=data.author_id,
        category_id=data.category_id,
        updated_at=None,
    )
    if data.tags:
        article.tags.extend(await _resolve_tags(db, data.tags))

    db.add(article)
    await db.flush()
    logger.info("Created article %s in category %s", article.id, article.category_id)
    return _article_to_dict(article)


async def update_article(db: AsyncSession, article_id: uuid.UUID, data: ArticleUpdate) -> dict:
    """
    Apply the fields present in *data* to the article.

    ``tags``, when present, replaces the whole tag set.  Fields sent as
    null are ignored.
    """
    article = await _load_article(db, article_id)

    update_data = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    tags_data: list[str] | None = update_data.pop("tags", None)

    await _ensure_references(db, update_data.get("author_id"), update_data.get("category_id"))

    for field, value in update_data.items():
        setattr(article, field, value)

    if tags_data is not None:
        article.tags.clear()
        article.tags.extend(await _resolve_tags(db, tags_data))
        # Tag changes only touch article_tags, so onupdate never fires for them.
        article.updated_at = utcnow()

    await db.flush()
    await cache.invalidate_article(article_id)
    logger.info("Updated article %s (%s)", article_id, ", ".join(sorted(data.model_fields_set)))
    return _article_to_dict(article)


async def delete_article(db: AsyncSession, article_id: uuid.UUID) -> None:
    article = await _load_article(db, article_id)
    await db.delete(article)
    await db.flush()
    await cache.invalidate_article(article_id)
    logger.info("Deleted article %s", article_id)
