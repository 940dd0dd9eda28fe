"""
api/routes/v1/funkos.py -- Funko REST endpoints.

Routes:
  GET    /funkos          -- paginated listing with name/category/max_price filters (public)
  GET    /funkos/{id}     -- detail, served cache-aside (public)
  POST   /funkos          -- create; 400 if the category does not exist (admin)
  PUT    /funkos/{id}     -- full update (admin)
  PATCH  /funkos/{id}     -- partial update; 409 if the new category does not exist (admin)
  DELETE /funkos/{id}     -- delete (admin)

Every write is announced on the /ws/funkos notification feed.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.errors import unwrap
from api.models import FunkoPageResponse, FunkoPatchRequest, FunkoRequest, FunkoResponse, SortDirection, SortField
from auth.dependencies import require_admin
from catalog.models import FunkoFilter
from catalog.service import FunkoService

router = APIRouter()


def _service(request: Request) -> FunkoService:
    return request.app.state.funko_service


@router.get("/funkos", response_model=FunkoPageResponse)
def list_funkos(
    request: Request,
    name: Optional[str] = Query(default=None, max_length=255),
    category: Optional[str] = Query(default=None, max_length=100),
    max_price: Optional[float] = Query(default=None, ge=0),
    page: int = Query(default=0, ge=0),
    size: int = Query(default=10, ge=1, le=100),
    sort_by: SortField = SortField.id,
    direction: SortDirection = SortDirection.asc,
) -> FunkoPageResponse:
    flt = FunkoFilter(
        name=name,
        category=category,
        max_price=max_price,
        page=page,
        size=size,
        sort_by=sort_by.value,
        direction=direction.value,
    )
    return FunkoPageResponse.from_page(unwrap(_service(request).get_all(flt)))


@router.get("/funkos/{funko_id}", response_model=FunkoResponse)
def get_funko(request: Request, funko_id: int) -> FunkoResponse:
    return FunkoResponse.from_funko(unwrap(_service(request).get_by_id(funko_id)))


@router.post("/funkos", response_model=FunkoResponse, status_code=201, dependencies=[Depends(require_admin)])
def create_funko(request: Request, body: FunkoRequest) -> FunkoResponse:
    result = _service(request).create(body.name, body.category, body.price, body.image)
    return FunkoResponse.from_funko(unwrap(result))


@router.put("/funkos/{funko_id}", response_model=FunkoResponse, dependencies=[Depends(require_admin)])
def update_funko(request: Request, funko_id: int, body: FunkoRequest) -> FunkoResponse:
    result = _service(request).update(funko_id, body.name, body.category, body.price, body.image)
    return FunkoResponse.from_funko(unwrap(result))


@router.patch("/funkos/{funko_id}", response_model=FunkoResponse, dependencies=[Depends(require_admin)])
def patch_funko(request: Request, funko_id: int, body: FunkoPatchRequest) -> FunkoResponse:
    result = _service(request).patch(
        funko_id,
        name=body.name,
        category=body.category,
        price=body.price,
        image=body.image,
    )
    return FunkoResponse.from_funko(unwrap(result))


@router.delete("/funkos/{funko_id}", response_model=FunkoResponse, dependencies=[Depends(require_admin)])
def delete_funko(request: Request, funko_id: int) -> FunkoResponse:
    return FunkoResponse.from_funko(unwrap(_service(request).delete(funko_id)))
