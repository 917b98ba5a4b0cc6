"""
Locale cookie tests — the resolver itself (built on a bare Starlette
request) and the GET/PUT endpoints.
"""
import pytest
from fastapi import Response
from httpx import AsyncClient
from starlette.requests import Request

from app.config import settings
from app.errors import ContentAPIError, UnsupportedLocaleError
from app.i18n import get_user_locale, set_user_locale


def _request(cookie: str | None = None) -> Request:
    headers = [(b"cookie", cookie.encode())] if cookie is not None else []
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


@pytest.mark.parametrize(
    "cookie, expected",
    [
        (None, "en"),
        ("NEXT_LOCALE=en", "en"),
        ("NEXT_LOCALE=ru", "ru"),
        ("NEXT_LOCALE=fr", "en"),
        ("NEXT_LOCALE=", "en"),
        ("NEXT_LOCALE=RU", "en"),
        ("OTHER=ru", "en"),
    ],
)
def test_get_user_locale(cookie, expected):
    assert get_user_locale(_request(cookie)) == expected


def test_get_user_locale_uses_configured_cookie_name(monkeypatch):
    monkeypatch.setattr(settings, "LOCALE_COOKIE_NAME", "lang")
    assert get_user_locale(_request("lang=ru")) == "ru"
    assert get_user_locale(_request("NEXT_LOCALE=ru")) == "en"


def test_set_user_locale_writes_cookie():
    response = Response()
    set_user_locale(response, "ru")
    cookie = response.headers["set-cookie"]
    assert cookie.startswith("NEXT_LOCALE=ru")
    assert response.headers["content-language"] == "ru"


def test_set_user_locale_rejects_unsupported_value():
    response = Response()
    with pytest.raises(UnsupportedLocaleError) as excinfo:
        set_user_locale(response, "fr")
    assert isinstance(excinfo.value, ContentAPIError)
    assert excinfo.value.locale == "fr"
    assert "set-cookie" not in response.headers


@pytest.mark.asyncio
async def test_read_locale_default(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/locale")
    assert resp.status_code == 200
    assert resp.json() == {"locale": "en"}
    assert resp.headers["content-language"] == "en"


@pytest.mark.asyncio
async def test_read_locale_from_cookie(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/locale", headers={"Cookie": "NEXT_LOCALE=ru"})
    assert resp.json() == {"locale": "ru"}


@pytest.mark.asyncio
async def test_read_locale_unsupported_cookie_falls_back(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/locale", headers={"Cookie": "NEXT_LOCALE=fr"})
    assert resp.json() == {"locale": "en"}


@pytest.mark.asyncio
async def test_write_locale_sets_cookie(async_client: AsyncClient):
    resp = await async_client.put("/api/v1/locale", json={"locale": "ru"})
    assert resp.status_code == 200
    assert resp.json() == {"locale": "ru"}
    assert resp.headers["set-cookie"].startswith("NEXT_LOCALE=ru")


@pytest.mark.asyncio
async def test_write_locale_rejects_unsupported(async_client: AsyncClient):
    resp = await async_client.put("/api/v1/locale", json={"locale": "fr"})
    assert resp.status_code == 422
    assert "set-cookie" not in resp.headers
