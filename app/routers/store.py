# routers/store.py
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.store import (CategoryCreateRequest, CategoryResponse,
                               CategoryUpdateRequest, ProductCreateRequest,
                               ProductListResponse, ProductResponse,
                               ProductUpdateRequest)
from app.services.permissions import require_permission
from app.services.product_service import ProductService
from app.services.rate_limit import rate_limited
from app.utils.router_utils import raise_for_error

router = APIRouter(prefix="/api", tags=["store"])
public_limit = Depends(rate_limited("GENERAL_API"))
admin_limit = Depends(rate_limited("ADMIN"))


def get_product_service() -> ProductService:
    return ProductService()


# ----------------------------------------------------------------------
# 공개 상품 조회
# ----------------------------------------------------------------------
@router.get("/products", response_model=ProductListResponse, dependencies=[public_limit])
async def list_products(
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ProductService, Depends(get_product_service)],
    category: Optional[str] = Query(None, max_length=100),
    featured: bool = False,
):
    """
    - **category**: 카테고리 slug
    - **featured**: true 면 추천 상품 최대 6개
    """
    products = await service.list_products(db, category, featured)
    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products], total=len(products)
    )


@router.get("/products/categories", response_model=List[CategoryResponse], dependencies=[public_limit])
async def list_categories(
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ProductService, Depends(get_product_service)],
):
    return await service.list_categories(db)


@router.get(
    "/products/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[public_limit],
)
async def get_product(
    product_id: int,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ProductService, Depends(get_product_service)],
):
    product = await service.get_product(db, product_id)
    if product is None:
        raise_for_error(ErrorResponse(error="Product not found", status_code=404))
    return product


# ----------------------------------------------------------------------
# 관리자 상품
# ----------------------------------------------------------------------
@router.get(
    "/admin/products",
    response_model=ProductListResponse,
    dependencies=[admin_limit, Depends(require_permission("store.products.view"))],
)
async def admin_list_products(
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ProductService, Depends(get_product_service)],
    category: Optional[str] = Query(None, max_length=100),
):
    products = await service.list_products(db, category)
    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products], total=len(products)
    )


@router.post(
    "/admin/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
    dependencies=[admin_limit, Depends(require_permission("store.products.create"))],
)
async def create_product(
    req: ProductCreateRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ProductService, Depends(get_product_service)],
):
    product, error = await service.create_product(db, req)
    if error:
        raise_for_error(error)
    return product


@router.put(
    "/admin/products/{product_id}",
    response_model=ProductResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    dependencies=[admin_limit, Depends(require_permission("store.products.edit"))],
)
async def update_product(
    product_id: int,
    req: ProductUpdateRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ProductService, Depends(get_product_service)],
):
    product, error = await service.update_product(db, product_id, req)
    if error:
        raise_for_error(error)
    return product


@router.delete(
    "/admin/products/{product_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[admin_limit, Depends(require_permission("store.products.delete"))],
)
async def delete_product(
    product_id: int,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ProductService, Depends(get_product_service)],
):
    error = await service.delete_product(db, product_id)
    if error:
        raise_for_error(error)
    return MessageResponse(message="Product deleted successfully")


# ----------------------------------------------------------------------
# 관리자 카테고리
# ----------------------------------------------------------------------
@router.get(
    "/admin/categories",
    response_model=List[CategoryResponse],
    dependencies=[admin_limit, Depends(require_permission("store.categories.view", "store.categories.manage"))],
)
async def admin_list_categories(
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ProductService, Depends(get_product_service)],
):
    return await service.list_categories(db, active_only=False)


@router.post(
    "/admin/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
    dependencies=[admin_limit, Depends(require_permission("store.categories.manage"))],
)
async def create_category(
    req: CategoryCreateRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ProductService, Depends(get_product_service)],
):
    category, error = await service.create_category(db, req)
    if error:
        raise_for_error(error)
    return category


@router.put(
    "/admin/categories/{category_id}",
    response_model=CategoryResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    dependencies=[admin_limit, Depends(require_permission("store.categories.manage"))],
)
async def update_category(
    category_id: int,
    req: CategoryUpdateRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ProductService, Depends(get_product_service)],
):
    category, error = await service.update_category(db, category_id, req)
    if error:
        raise_for_error(error)
    return category


@router.delete(
    "/admin/categories/{category_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[admin_limit, Depends(require_permission("store.categories.manage"))],
)
async def delete_category(
    category_id: int,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ProductService, Depends(get_product_service)],
):
    error = await service.delete_category(db, category_id)
    if error:
        raise_for_error(error)
    return MessageResponse(message="Category deleted successfully")
