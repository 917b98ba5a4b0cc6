"""
Category service — CRUD for the category tree.

The full list is served from cache because it is read on nearly every
page and changes rarely; any write drops the cached list.
"""
import logging
import uuid

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import CATEGORY_LIST_KEY, cache
from app.config import settings
from app.errors import ConflictError, NotFoundError
from app.models import Article, Category
from app.schemas import CategoryCreate, CategoryResponse, CategoryUpdate

logger = logging.getLogger(__name__)


def _category_to_dict(category: Category) -> dict:
    return CategoryResponse.model_validate(category).model_dump(mode="json")


async def _get_or_raise(db: AsyncSession, category_id: uuid.UUID) -> Category:
    category = await db.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category", category_id)
    return category


async def _check_parent(db: AsyncSession, category_id: uuid.UUID, parent_id: uuid.UUID) -> None:
    """Walk up from *parent_id*; reaching *category_id* means a cycle."""
    current: uuid.UUID | None = parent_id
    while current is not None:
        if current == category_id:
            raise ConflictError("A category cannot be its own ancestor")
        current = (await _get_or_raise(db, current)).parent_id


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_categories(db: AsyncSession) -> list[dict]:
    cached = await cache.get(CATEGORY_LIST_KEY)
    if cached is not None:
        return cached

    result = await db.execute(select(Category).order_by(Category.title, Category.id))
    data = [_category_to_dict(c) for c in result.scalars().all()]
    await cache.set(CATEGORY_LIST_KEY, data, ttl=settings.CACHE_TTL_LIST)
    return data


async def get_category(db: AsyncSession, category_id: uuid.UUID) -> dict:
    return _category_to_dict(await _get_or_raise(db, category_id))


async def create_category(db: AsyncSession, data: CategoryCreate) -> dict:
    if data.parent_id is not None:
        await _get_or_raise(db, data.parent_id)

    category = Category(
        title=data.title,
        description=data.description,
        parent_id=data.parent_id,
        updated_at=None,
    )
    db.add(category)
    await db.flush()
    await cache.invalidate_categories()
    logger.info("Created category %s (%r)", category.id, category.title)
    return _category_to_dict(category)


async def update_category(db: AsyncSession, category_id: uuid.UUID, data: CategoryUpdate) -> dict:
    """Apply the non-null fields present in *data*."""
    category = await _get_or_raise(db, category_id)

    update_data = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    if "parent_id" in update_data:
        await _check_parent(db, category_id, update_data["parent_id"])

    for field, value in update_data.items():
        setattr(category, field, value)

    await db.flush()
    await cache.invalidate_categories()
    return _category_to_dict(category)


async def delete_category(db: AsyncSession, category_id: uuid.UUID) -> None:
    """
    Delete a category that no article references.  Child categories are
    detached (their ``parent_id`` becomes null) rather than deleted.
    """
    category = await _get_or_raise(db, category_id)

    count_q = select(func.count()).select_from(Article).where(Article.category_id == category_id)
    article_count: int = (await db.execute(count_q)).scalar_one()
    if article_count:
        raise ConflictError(f"Category still has {article_count} article(s)")

    await db.execute(
        update(Category)
        .where(Category.parent_id == category_id)
        .values(parent_id=None)
        .execution_options(synchronize_session="fetch")
    )
    await db.delete(category)
    await db.flush()
    await cache.invalidate_categories()
    logger.info("Deleted category %s", category_id)
