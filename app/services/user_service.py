"""
User service — CRUD, soft delete and moderation for the User aggregate.

Users are not cached: every moderation action (block, soft delete) must
be visible immediately.

Email, username and phone uniqueness is enforced by database constraints;
the router translates the resulting ``IntegrityError`` into 409.
"""
import logging
import uuid
from typing import get_args

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import cache
from app.errors import NotFoundError
from app.models import Article, User, utcnow
from app.query import FieldAllowList, build_query_spec, order_by_clauses, where_clauses
from app.schemas import (
    PaginatedResponse,
    UserCreate,
    UserLookup,
    UserLookupField,
    UserPageQuery,
    UserResponse,
    UserSortField,
    UserUpdate,
)

logger = logging.getLogger(__name__)

USER_FIELDS = FieldAllowList(
    searchable=frozenset(get_args(UserLookupField)),
    filterable=frozenset(get_args(UserLookupField)),
    sortable=frozenset(get_args(UserSortField)),
)

_COLUMNS = {
    "email": User.email,
    "username": User.username,
    "phone": User.phone,
    "created_at": User.created_at,
    "updated_at": User.updated_at,
}


async def _get_or_raise(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


async def _apply(db: AsyncSession, user_id: uuid.UUID, **values) -> User:
    user = await _get_or_raise(db, user_id)
    for field, value in values.items():
        setattr(user, field, value)
    await db.flush()
    return user


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    return await _get_or_raise(db, user_id)


async def get_user_by(db: AsyncSession, lookup: UserLookup) -> User | None:
    """
    Return the first user matching every criterion given in *lookup*.

    Returns None when *lookup* carries no criterion at all, instead of
    matching an arbitrary user.
    """
    criteria = {k: v for k, v in lookup.model_dump().items() if v}
    if not criteria:
        return None
    q = select(User).where(*(_COLUMNS[k] == v for k, v in criteria.items())).limit(1)
    return (await db.execute(q)).scalars().first()


async def get_user_page(db: AsyncSession, query: UserPageQuery) -> PaginatedResponse:
    """
    Return one page of users.  A filter on a field takes precedence over
    a search on the same field.
    """
    spec = build_query_spec(
        USER_FIELDS,
        offset=query.offset,
        limit=query.limit,
        search=query.search,
        filter=query.filter,
        order=query.order,
    )
    clauses = where_clauses(spec, _COLUMNS)

    count_q = select(func.count()).select_from(User).where(*clauses)
    total: int = (await db.execute(count_q)).scalar_one()

    page_q = (
        select(User)
        .where(*clauses)
        .order_by(*order_by_clauses(spec, _COLUMNS))
        .offset(spec.offset)
        .limit(spec.limit)
    )
    users = (await db.execute(page_q)).scalars().all()

    return PaginatedResponse(
        items=[UserResponse.model_validate(u).model_dump(mode="json") for u in users],
        total=total,
        offset=spec.offset,
        limit=spec.limit,
    )


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_user(db: AsyncSession, data: UserCreate) -> User:
    user = User(
        phone=data.phone,
        username=data.username,
        email=data.email,
        avatar_url=data.avatar_url,
        updated_at=None,
        deleted_at=None,
        blocked_at=None,
        block_reason=None,
    )
    db.add(user)
    await db.flush()
    logger.info("Created user %s (%s)", user.id, user.username)
    return user


async def update_user(db: AsyncSession, user_id: uuid.UUID, data: UserUpdate) -> User:
    """Apply the non-empty fields present in *data*; everything else is kept."""
    values = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v}
    return await _apply(db, user_id, **values)


async def remove_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    """Soft delete: the row stays, ``deleted_at`` is stamped."""
    user = await _apply(db, user_id, deleted_at=utcnow())
    logger.info("Soft-deleted user %s", user_id)
    return user


async def restore_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    return await _apply(db, user_id, deleted_at=None)


async def delete_user(db: AsyncSession, user_id: uuid.UUID) -> None:
    """
    Hard delete.  The database cascades the delete to the user's articles,
    so their cached detail entries are dropped as well.
    """
    user = await _get_or_raise(db, user_id)
    article_ids = (
        await db.execute(select(Article.id).where(Article.author_id == user_id))
    ).scalars().all()

    await db.delete(user)
    await db.flush()
    for article_id in article_ids:
        await cache.invalidate_article(article_id)
    logger.info("Deleted user %s with %d article(s)", user_id, len(article_ids))


async def block_user(db: AsyncSession, user_id: uuid.UUID, reason: str) -> User:
    user = await _apply(db, user_id, block_reason=reason, blocked_at=utcnow())
    logger.info("Blocked user %s: %s", user_id, reason)
    return user


async def unblock_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    return await _apply(db, user_id, block_reason=None, blocked_at=None)
