"""
api/errors.py -- Map service error kinds onto HTTP responses.

This is the only place ErrorKind meets a status code. Routes call
unwrap(result) and either get the value or an HTTPException whose detail is
the structured {"code", "message"} dict that api.main's handler renders as
the uniform error envelope.
"""

from __future__ import annotations

from typing import TypeVar

from fastapi import HTTPException

from api.models import ErrorDetail
from core.errors import ErrorKind, Result, ServiceError

T = TypeVar("T")

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.VALIDATION: 400,
}


def to_http(error: ServiceError) -> HTTPException:
    return HTTPException(
        status_code=STATUS_BY_KIND[error.kind],
        detail=ErrorDetail(code=error.kind.value, message=error.message).model_dump(exclude_none=True),
    )


def unwrap(result: Result[T]) -> T:
    if result.is_failure:
        raise to_http(result.error)
    return result.value
