import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas import (
    PaginatedResponse,
    UserBlock,
    UserCreate,
    UserLookup,
    UserPageQuery,
    UserResponse,
    UserUpdate,
)
from app.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])

_DUPLICATE_DETAIL = "A user with this username, email or phone already exists"


@router.post("/page", response_model=PaginatedResponse)
async def get_user_page(query: UserPageQuery, db: AsyncSession = Depends(get_db)):
    return await user_service.get_user_page(db, query)


# Declared before "/{user_id}" so "lookup" is not parsed as an id.
@router.get("/lookup", response_model=UserResponse | None)
async def get_user_by(lookup: UserLookup = Depends(), db: AsyncSession = Depends(get_db)):
    return await user_service.get_user_by(db, lookup)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await user_service.get_user(db, user_id)


@router.post("", status_code=201, response_model=UserResponse)
async def create_user(data: UserCreate, db: AsyncSession = Depends(get_db)):
    try:
        return await user_service.create_user(db, data)
    except IntegrityError:
        raise HTTPException(status_code=409, detail=_DUPLICATE_DETAIL)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(user_id: uuid.UUID, data: UserUpdate, db: AsyncSession = Depends(get_db)):
    try:
        return await user_service.update_user(db, user_id, data)
    except IntegrityError:
        raise HTTPException(status_code=409, detail=_DUPLICATE_DETAIL)


@router.post("/{user_id}/remove", response_model=UserResponse)
async def remove_user(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await user_service.remove_user(db, user_id)


@router.post("/{user_id}/restore", response_model=UserResponse)
async def restore_user(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await user_service.restore_user(db, user_id)


@router.delete("/{user_id}", status_code=204)
async def delete_user(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    await user_service.delete_user(db, user_id)


@router.post("/{user_id}/block", response_model=UserResponse)
async def block_user(user_id: uuid.UUID, data: UserBlock, db: AsyncSession = Depends(get_db)):
    return await user_service.block_user(db, user_id, data.block_reason)


@router.post("/{user_id}/unblock", response_model=UserResponse)
async def unblock_user(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await user_service.unblock_user(db, user_id)
