"""Typed API errors.

Each error carries a translator key (see ``vidtube.i18n``) instead of a
rendered message; the application exception handler renders it in the
request locale and wraps it in the error envelope.
"""
from typing import Any


class ApiError(Exception):
    status_code: int = 500

    def __init__(
        self,
        key: str,
        errors: list[Any] | None = None,
        status_code: int | None = None,
        **params: Any,
    ):
        super().__init__(key)
        self.key = key
        self.errors = errors or []
        self.params = params
        if status_code is not None:
            self.status_code = status_code


class BadRequest(ApiError):
    status_code = 400


class Unauthorized(ApiError):
    status_code = 401


class Forbidden(ApiError):
    status_code = 403


class NotFound(ApiError):
    status_code = 404


class Conflict(ApiError):
    status_code = 409


class InternalError(ApiError):
    status_code = 500
