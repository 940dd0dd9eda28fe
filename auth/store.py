"""
auth/store.py -- SQLAlchemy Core persistence layer for users.

Pattern: Repository + Data Mapper (same as catalog/store.py).
UserStore is the repository; _row_to_user is the mapper. Service and route
code never touches SQL directly.

Contract:
  Lookups return None (never raise) for "not found" and for blank keys.
  save() returns the persisted User with id and timestamps filled in.
  update() / delete() return the affected User, or None if the id is unknown.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(username) and UNIQUE(email) back up the service-level duplicate
  check. Two concurrent sign-ups can both pass the check; the second insert
  then raises sqlalchemy.exc.IntegrityError, which AuthService maps to the
  same Conflict outcome.

Layer rule: no imports from api/, cache/, catalog/, or notifications/.
"""

from __future__ import annotations

import logging

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, text
from sqlalchemy.engine import Engine

from auth.models import Role, User
from core.db import make_engine, now_iso

_DEFAULT_DB_URL = "sqlite:///funkostore_auth.db"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(50), nullable=False, unique=True),
    Column("email", String(100), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("role", String(10), nullable=False, server_default=Role.USER.value),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    # Never reuse the id of a deleted user: tokens identify users by id.
    sqlite_autoincrement=True,
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///funkostore.db")
        user = store.save(User(username="alice", email="a@x.com", hashed_password=hash_password("pw")))
        store.find_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL, logger: logging.Logger | None = None) -> None:
        self.engine: Engine = make_engine(db_url)
        self._log = logger or logging.getLogger("funkostore.auth.store")
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM users")).scalar()
        return (result or 0) > 0

    def find_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        if not username or not username.strip():
            return None
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        if not email or not email.strip():
            return None
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_all(self) -> list[User]:
        """Return all users ordered by id."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, user: User) -> User:
        """Insert a new user and return it with id and timestamps assigned.

        Raises sqlalchemy.exc.IntegrityError if the username or email already
        exists.
        """
        now = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    email=user.email,
                    hashed_password=user.hashed_password,
                    role=_role_value(user.role),
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            user_id = result.inserted_primary_key[0]
        self._log.info("User saved with id %s", user_id)
        return self.get_by_id(user_id)

    def update(self, user_id: int, user: User) -> User | None:
        """Replace the mutable fields of a user. Returns None if user_id is unknown."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == user_id)
                .values(
                    username=user.username,
                    email=user.email,
                    hashed_password=user.hashed_password,
                    role=_role_value(user.role),
                    updated_at=now_iso(),
                )
            )
            conn.commit()
        if result.rowcount == 0:
            self._log.warning("Update skipped: user %s not found", user_id)
            return None
        return self.get_by_id(user_id)

    def delete(self, user_id: int) -> User | None:
        """Permanently delete a user. Returns the deleted record, or None if not found."""
        found = self.get_by_id(user_id)
        if found is None:
            self._log.warning("Delete skipped: user %s not found", user_id)
            return None
        with self.engine.connect() as conn:
            conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        self._log.info("User %s deleted", user_id)
        return found

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _role_value(role: Role | str) -> str:
    return role.value if isinstance(role, Role) else str(role).upper()


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        role=Role(row.role),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
