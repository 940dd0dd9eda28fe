"""
core/errors.py -- Error kinds and the Result type returned by services.

Services never raise for expected business outcomes (not found, duplicate,
bad credentials, invalid reference). They return Result.fail(kind, message)
and the API layer maps error.kind to an HTTP status. The kind set is closed:
boundary code matches on ErrorKind, never on exception type.

ConfigurationError is the exception: it is raised once, at component
construction, when the process cannot run at all (e.g. no signing key).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    VALIDATION = "validation"


class ConfigurationError(RuntimeError):
    """Fatal startup condition. Never raised per request."""


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class Result(Generic[T]):
    """Success value or a typed failure, never both."""

    value: T | None = None
    error: ServiceError | None = None

    @property
    def is_ok(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @classmethod
    def ok(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> Result[T]:
        return cls(error=ServiceError(kind=kind, message=message))
