import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.cache import cache
from app.config import settings
from app.database import create_tables
from app.errors import (
    ConflictError,
    ContentAPIError,
    InvalidFieldError,
    NotFoundError,
    UnsupportedLocaleError,
)
from app.middleware import TimingMiddleware
from app.routers import articles, categories, locale, metrics, users

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if settings.CREATE_TABLES:
        await create_tables()
    await cache.connect()  # App works without Redis
    logger.info("Content API started (env=%s)", settings.APP_ENV)
    yield
    await cache.disconnect()


app = FastAPI(
    title="Content API",
    description="Articles, categories and users with filterable, sortable listings",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error handlers
def _domain_error_handler(request: Request, exc: ContentAPIError) -> JSONResponse:
    # Map domain errors to stable HTTP semantics.
    status_code = 400
    if isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, ConflictError):
        status_code = 409
    elif isinstance(exc, (InvalidFieldError, UnsupportedLocaleError)):
        status_code = 422

    logger.info("%s %s -> %d: %s", request.method, request.url.path, status_code, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


app.add_exception_handler(ContentAPIError, _domain_error_handler)  # type: ignore[arg-type]

# Routers
app.include_router(articles.router)
app.include_router(categories.router)
app.include_router(users.router)
app.include_router(locale.router)
app.include_router(metrics.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION}
