import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.config import settings

SortDirection = Literal["asc", "desc"]
Locale = Literal["en", "ru"]


# --- Pagination ---

class PageQuery(BaseModel):
    offset: int = Field(0, ge=0)
    limit: int = Field(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)


class PaginatedResponse(BaseModel):
    items: list  # Will be typed in router
    total: int
    offset: int
    limit: int


# --- User ---

UserLookupField = Literal["email", "username", "phone"]
UserSortField = Literal["email", "username", "phone", "created_at", "updated_at"]


class UserCreate(BaseModel):
    phone: str | None = Field(None, max_length=32)
    username: str = Field(max_length=100)
    email: EmailStr
    avatar_url: str | None = Field(None, max_length=1024)


class UserUpdate(BaseModel):
    phone: str | None = Field(None, max_length=32)
    username: str | None = Field(None, max_length=100)
    email: EmailStr | None = None
    avatar_url: str | None = Field(None, max_length=1024)


class UserBlock(BaseModel):
    block_reason: str = Field(min_length=1)


class UserLookup(BaseModel):
    email: EmailStr | None = None
    username: str | None = None
    phone: str | None = None


class UserResponse(BaseModel):
    id: uuid.UUID
    phone: str | None
    username: str
    email: str
    avatar_url: str | None
    created_at: datetime
    updated_at: datetime | None
    deleted_at: datetime | None
    blocked_at: datetime | None
    block_reason: str | None
    model_config = ConfigDict(from_attributes=True)


class UserSearch(BaseModel):
    field: UserLookupField
    value: str


class UserFilter(BaseModel):
    field: UserLookupField
    value: str


class UserOrder(BaseModel):
    field: UserSortField
    direction: SortDirection


class UserPageQuery(PageQuery):
    search: list[UserSearch] | None = None
    # Required for users, unlike articles; an empty list is accepted.
    filter: list[UserFilter]
    order: list[UserOrder] | None = None


# --- Category ---

class CategoryCreate(BaseModel):
    title: str = Field(min_length=1, max_length=128)
    description: str
    parent_id: uuid.UUID | None = None


class CategoryUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=128)
    description: str | None = None
    parent_id: uuid.UUID | None = None


class CategoryResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    parent_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime | None
    model_config = ConfigDict(from_attributes=True)


# --- Article ---

ArticleSearchField = Literal["title", "description"]
ArticleFilterField = Literal["author_id", "category_id"]
ArticleSortField = Literal["likes", "visits", "created_at", "updated_at"]


class ArticleCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str
    md_url: str = Field(max_length=1024)
    tags: list[str] = []
    author_id: uuid.UUID
    category_id: uuid.UUID


class ArticleUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=300)
    description: str | None = None
    md_url: str | None = Field(None, max_length=1024)
    tags: list[str] | None = None
    author_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None


class ArticleResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    md_url: str
    tags: list[str]
    likes: int
    visits: int
    author_id: uuid.UUID
    category_id: uuid.UUID
    created_at: datetime
    updated_at: datetime | None


class ArticleSearch(BaseModel):
    field: ArticleSearchField
    value: str


class ArticleFilter(BaseModel):
    field: ArticleFilterField
    value: uuid.UUID


class ArticleOrder(BaseModel):
    field: ArticleSortField
    direction: SortDirection


class ArticlePageQuery(PageQuery):
    search: list[ArticleSearch] | None = None
    filter: list[ArticleFilter] | None = None
    tags: list[str] | None = None
    order: list[ArticleOrder] | None = None


# --- Locale ---

class LocaleUpdate(BaseModel):
    locale: Locale


class LocaleResponse(BaseModel):
    locale: Locale


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_articles: int
    total_categories: int
    total_users: int
    deleted_users: int
    blocked_users: int
    cache_info: dict = {}
