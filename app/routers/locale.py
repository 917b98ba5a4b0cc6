from fastapi import APIRouter, Depends, Response

from app.i18n import get_locale, set_user_locale
from app.schemas import Locale, LocaleResponse, LocaleUpdate

router = APIRouter(prefix="/api/v1/locale", tags=["locale"])


@router.get("", response_model=LocaleResponse)
async def read_locale(response: Response, locale: Locale = Depends(get_locale)):
    response.headers["Content-Language"] = locale
    return LocaleResponse(locale=locale)


@router.put("", response_model=LocaleResponse)
async def write_locale(data: LocaleUpdate, response: Response):
    set_user_locale(response, data.locale)
    return LocaleResponse(locale=data.locale)
