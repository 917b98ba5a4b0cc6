# Services package.
#
# Each module exposes async functions that encapsulate business logic and
# database access for a single aggregate:
#
#   article_service   — CRUD + filterable page queries + cache for Article
#   category_service  — CRUD for the Category tree + cached full list
#   user_service      — CRUD, soft delete, blocking and page queries for User
#
# Every function takes an AsyncSession first so that the router layer
# controls the transaction boundary via the ``get_db`` dependency.
# Missing records raise ``app.errors.NotFoundError``.
