"""
API request and response models for the Funko store REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
catalog/models.py, which own the internal domain representation. Route
handlers map between the two via the from_* factory methods.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import AuthResponse, PublicUser, User
from catalog.models import Category, Funko, Page

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class SortField(str, Enum):
    id = "id"
    name = "name"
    price = "price"
    created_at = "created_at"


class SortDirection(str, Enum):
    asc = "asc"
    desc = "desc"


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class SignUpRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(min_length=3, max_length=50)
    email: str = Field(max_length=100, pattern=EMAIL_PATTERN)
    # 72 bytes is bcrypt's truncation point.
    password: str = Field(min_length=6, max_length=72)


class SignInRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1, max_length=72)


class UserResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    role: str

    @classmethod
    def from_public(cls, user: PublicUser) -> "UserResponse":
        return cls(id=user.id, username=user.username, email=user.email, role=user.role.value)

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls.from_public(PublicUser.from_user(user))


class AuthResponseModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse

    @classmethod
    def from_auth(cls, auth: AuthResponse, expires_in: int) -> "AuthResponseModel":
        return cls(token=auth.token, expires_in=expires_in, user=UserResponse.from_public(auth.user))


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class CategoryRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)


class CategoryResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    created_at: str
    updated_at: str

    @classmethod
    def from_category(cls, category: Category) -> "CategoryResponse":
        return cls(
            id=category.id,
            name=category.name,
            created_at=category.created_at,
            updated_at=category.updated_at,
        )


# ---------------------------------------------------------------------------
# Funkos
# ---------------------------------------------------------------------------


class FunkoRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    category: str = Field(min_length=1, max_length=100)
    price: float = Field(ge=0)
    image: str = Field(default="", max_length=500)


class FunkoPatchRequest(BaseModel):
    """All fields optional; only those present are changed."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    price: Optional[float] = Field(default=None, ge=0)
    image: Optional[str] = Field(default=None, max_length=500)


class FunkoResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    category: str
    price: float
    image: str
    created_at: str
    updated_at: str

    @classmethod
    def from_funko(cls, funko: Funko) -> "FunkoResponse":
        return cls(
            id=funko.id,
            name=funko.name,
            category=funko.category,
            price=funko.price,
            image=funko.image,
            created_at=funko.created_at,
            updated_at=funko.updated_at,
        )


class FunkoPageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: list[FunkoResponse]
    total_count: int
    page: int
    size: int
    total_pages: int

    @classmethod
    def from_page(cls, page: Page[Funko]) -> "FunkoPageResponse":
        return cls(
            items=[FunkoResponse.from_funko(f) for f in page.items],
            total_count=page.total_count,
            page=page.page,
            size=page.size,
            total_pages=page.total_pages,
        )


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
