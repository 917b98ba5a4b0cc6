"""
Domain exceptions raised by the query builder and the service layer.

The HTTP mapping lives in ``app.main``; services never raise
``HTTPException`` themselves so they stay usable outside a request.
"""


class ContentAPIError(Exception):
    """Base class for errors the API maps to a stable HTTP status."""


class InvalidFieldError(ContentAPIError):
    """A search/filter/order entry named a field outside the allow-list."""

    def __init__(self, field: str, category: str) -> None:
        self.field = field
        self.category = category
        super().__init__(f"Field {field!r} is not allowed in {category}")


class NotFoundError(ContentAPIError):
    """The identifier passed to a lookup or mutation matches no record."""

    def __init__(self, entity: str, identifier=None) -> None:
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found")


class ConflictError(ContentAPIError):
    """The write would break a uniqueness or referential rule."""


class UnsupportedLocaleError(ContentAPIError):
    """A locale outside the supported set was asked to be stored."""

    def __init__(self, locale: str) -> None:
        self.locale = locale
        super().__init__(f"Unsupported locale: {locale!r}")
