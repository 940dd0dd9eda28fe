"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in catalog/models.py -- dataclasses own domain shape; stores and services
do the work.

Layer rule: no imports from api/, cache/, catalog/, or notifications/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Two-level role hierarchy. Rank order is USER < ADMIN (see auth.gate)."""

    USER = "USER"
    ADMIN = "ADMIN"


@dataclass
class User:
    """A registered account.

    username and email are each unique across all users. The auth workflow
    checks this before insert; the users table also carries UNIQUE
    constraints, so a racing duplicate surfaces as IntegrityError.

    id is None before the record is written to the database.
    """

    username: str
    email: str
    hashed_password: str
    role: Role = Role.USER
    id: int | None = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, refreshed by store on update


@dataclass(frozen=True)
class PublicUser:
    """Projection of a User that is safe to return to clients -- no hash."""

    id: int
    username: str
    email: str
    role: Role

    @classmethod
    def from_user(cls, user: User) -> PublicUser:
        return cls(id=user.id, username=user.username, email=user.email, role=user.role)


@dataclass(frozen=True)
class AuthResponse:
    """Result of a successful sign-up or sign-in."""

    token: str
    user: PublicUser
