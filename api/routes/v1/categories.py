"""
api/routes/v1/categories.py -- Category REST endpoints.

Routes:
  GET    /categories        -- list all (public)
  GET    /categories/{id}   -- detail, served cache-aside (requires auth)
  POST   /categories        -- create (admin)
  PUT    /categories/{id}   -- rename (admin)
  DELETE /categories/{id}   -- delete, refused while funkos reference it (admin)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.errors import unwrap
from api.models import CategoryRequest, CategoryResponse
from auth.dependencies import get_current_user, require_admin
from catalog.service import CategoryService

router = APIRouter()


def _service(request: Request) -> CategoryService:
    return request.app.state.category_service


@router.get("/categories", response_model=list[CategoryResponse])
def list_categories(request: Request) -> list[CategoryResponse]:
    return [CategoryResponse.from_category(c) for c in _service(request).get_all()]


@router.get("/categories/{category_id}", response_model=CategoryResponse, dependencies=[Depends(get_current_user)])
def get_category(request: Request, category_id: str) -> CategoryResponse:
    return CategoryResponse.from_category(unwrap(_service(request).get_by_id(category_id)))


@router.post("/categories", response_model=CategoryResponse, status_code=201, dependencies=[Depends(require_admin)])
def create_category(request: Request, body: CategoryRequest) -> CategoryResponse:
    return CategoryResponse.from_category(unwrap(_service(request).create(body.name)))


@router.put("/categories/{category_id}", response_model=CategoryResponse, dependencies=[Depends(require_admin)])
def update_category(request: Request, category_id: str, body: CategoryRequest) -> CategoryResponse:
    return CategoryResponse.from_category(unwrap(_service(request).update(category_id, body.name)))


@router.delete("/categories/{category_id}", response_model=CategoryResponse, dependencies=[Depends(require_admin)])
def delete_category(request: Request, category_id: str) -> CategoryResponse:
    return CategoryResponse.from_category(unwrap(_service(request).delete(category_id)))
