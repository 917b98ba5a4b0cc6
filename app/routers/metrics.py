from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import cache
from app.database import get_db
from app.models import Article, Category, User
from app.schemas import MetricsResponse

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])


async def _count(db: AsyncSession, model, *where) -> int:
    return (await db.execute(select(func.count()).select_from(model).where(*where))).scalar_one()


@router.get("", response_model=MetricsResponse)
async def get_metrics(db: AsyncSession = Depends(get_db)):
    return MetricsResponse(
        total_articles=await _count(db, Article),
        total_categories=await _count(db, Category),
        total_users=await _count(db, User),
        deleted_users=await _count(db, User, User.deleted_at.is_not(None)),
        blocked_users=await _count(db, User, User.blocked_at.is_not(None)),
        cache_info=cache.stats,
    )
