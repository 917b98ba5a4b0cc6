import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas import ArticleCreate, ArticlePageQuery, ArticleResponse, ArticleUpdate, PaginatedResponse
from app.services import article_service

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])


@router.post("/page", response_model=PaginatedResponse)
async def get_article_page(query: ArticlePageQuery, db: AsyncSession = Depends(get_db)):
    return await article_service.get_article_page(db, query)


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await article_service.get_article(db, article_id)


@router.post("", status_code=201, response_model=ArticleResponse)
async def create_article(data: ArticleCreate, db: AsyncSession = Depends(get_db)):
    return await article_service.create_article(db, data)


@router.patch("/{article_id}", response_model=ArticleResponse)
async def update_article(article_id: uuid.UUID, data: ArticleUpdate, db: AsyncSession = Depends(get_db)):
    return await article_service.update_article(db, article_id, data)


@router.delete("/{article_id}", status_code=204)
async def delete_article(article_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    await article_service.delete_article(db, article_id)
