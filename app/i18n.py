"""
User locale stored in a cookie.

Only ``en`` and ``ru`` are supported; a missing, empty or unknown cookie
value resolves to ``settings.DEFAULT_LOCALE``.
"""
from typing import get_args

from fastapi import Request, Response

from app.config import settings
from app.errors import UnsupportedLocaleError
from app.schemas import Locale

SUPPORTED_LOCALES: frozenset[str] = frozenset(get_args(Locale))

# One year; the cookie is a preference, not a session.
COOKIE_MAX_AGE = 60 * 60 * 24 * 365


def default_locale() -> Locale:
    if settings.DEFAULT_LOCALE in SUPPORTED_LOCALES:
        return settings.DEFAULT_LOCALE
    return "en"


def get_user_locale(request: Request) -> Locale:
    value = request.cookies.get(settings.LOCALE_COOKIE_NAME)
    if value not in SUPPORTED_LOCALES:
        return default_locale()
    return value


def set_user_locale(response: Response, locale: Locale) -> None:
    if locale not in SUPPORTED_LOCALES:
        raise UnsupportedLocaleError(locale)
    response.set_cookie(
        settings.LOCALE_COOKIE_NAME,
        locale,
        max_age=COOKIE_MAX_AGE,
        path="/",
        samesite="lax",
    )
    response.headers["Content-Language"] = locale


async def get_locale(request: Request) -> Locale:
    """FastAPI dependency: the locale the current request should render in."""
    return get_user_locale(request)
