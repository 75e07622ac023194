"""
스토어 상품 / 카테고리 서비스
- 상품 이름과 설명은 영어/아랍어 모두 필수
- 공개 목록의 featured 필터는 최대 6개
"""
import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.product import (DEFAULT_OUT_OF_STOCK_MESSAGE, Product,
                                ProductCategory)
from app.repositories.product import ProductRepository
from app.schemas.common import ErrorResponse
from app.schemas.store import (BilingualText, CategoryCreateRequest,
                               CategoryUpdateRequest, ProductCreateRequest,
                               ProductUpdateRequest)

logger = logging.getLogger(__name__)

FEATURED_LIMIT = 6

BILINGUAL_REQUIRED = "Both English and Arabic content is required for name and description"


def _is_complete(text: Optional[BilingualText]) -> bool:
    return text is not None and bool(text.en.strip()) and bool(text.ar.strip())


class ProductService:

    def __init__(self, repository: Optional[ProductRepository] = None):
        self.repository = repository or ProductRepository()

    # -------------------- #
    # 공개 조회
    # -------------------- #

    async def list_products(
        self, db: AsyncSession, category: Optional[str] = None, featured: bool = False
    ) -> List[Product]:
        if featured:
            return await self.repository.get_products(db, category=category, featured=True,
                                                      limit=FEATURED_LIMIT)
        return await self.repository.get_products(db, category=category)

    async def get_product(self, db: AsyncSession, product_id: int) -> Optional[Product]:
        return await self.repository.get_product(db, product_id)

    async def list_categories(self, db: AsyncSession, active_only: bool = True) -> List[ProductCategory]:
        return await self.repository.get_categories(db, active_only=active_only)

    # -------------------- #
    # 관리자 상품
    # -------------------- #

    async def create_product(
        self, db: AsyncSession, data: ProductCreateRequest
    ) -> tuple[Optional[Product], Optional[ErrorResponse]]:
        """
        Returns:
            성공 시: (Product, None)
            실패 시: (None, ErrorResponse)
        """
        if not _is_complete(data.name) or not _is_complete(data.description):
            return None, ErrorResponse(error=BILINGUAL_REQUIRED)
        if data.sale_price and data.sale_price >= data.price:
            return None, ErrorResponse(error="Sale price must be lower than price")

        payload = data.model_dump()
        if payload["out_of_stock_message"] is None:
            payload["out_of_stock_message"] = dict(DEFAULT_OUT_OF_STOCK_MESSAGE)

        product = Product(**payload)
        return await self.repository.create_product(db, product), None

    async def update_product(
        self, db: AsyncSession, product_id: int, data: ProductUpdateRequest
    ) -> tuple[Optional[Product], Optional[ErrorResponse]]:
        product = await self.repository.get_product(db, product_id)
        if product is None:
            return None, ErrorResponse(error="Product not found", status_code=404)

        for text in (data.name, data.description):
            if text is not None and not _is_complete(text):
                return None, ErrorResponse(error=BILINGUAL_REQUIRED)

        price = data.price if data.price is not None else product.price
        sale_price = data.sale_price if data.sale_price is not None else product.sale_price
        if sale_price and sale_price >= price:
            return None, ErrorResponse(error="Sale price must be lower than price")

        update_data = data.model_dump(exclude_unset=True)
        return await self.repository.update_product(db, product, update_data), None

    async def delete_product(self, db: AsyncSession, product_id: int) -> Optional[ErrorResponse]:
        product = await self.repository.get_product(db, product_id)
        if product is None:
            return ErrorResponse(error="Product not found", status_code=404)
        await self.repository.delete_product(db, product)
        return None

    # -------------------- #
    # 관리자 카테고리
    # -------------------- #

    async def create_category(
        self, db: AsyncSession, data: CategoryCreateRequest
    ) -> tuple[Optional[ProductCategory], Optional[ErrorResponse]]:
        if not data.name.en.strip():
            return None, ErrorResponse(error="Category name is required")
        if await self.repository.get_category_by_slug(db, data.slug):
            return None, ErrorResponse(error="Category slug already exists", status_code=409)

        category = ProductCategory(**data.model_dump())
        return await self.repository.create_category(db, category), None

    async def update_category(
        self, db: AsyncSession, category_id: int, data: CategoryUpdateRequest
    ) -> tuple[Optional[ProductCategory], Optional[ErrorResponse]]:
        category = await self.repository.get_category(db, category_id)
        if category is None:
            return None, ErrorResponse(error="Category not found", status_code=404)

        if data.slug and data.slug != category.slug:
            if await self.repository.get_category_by_slug(db, data.slug):
                return None, ErrorResponse(error="Category slug already exists", status_code=409)

        update_data = data.model_dump(exclude_unset=True)
        return await self.repository.update_category(db, category, update_data), None

    async def delete_category(self, db: AsyncSession, category_id: int) -> Optional[ErrorResponse]:
        category = await self.repository.get_category(db, category_id)
        if category is None:
            return ErrorResponse(error="Category not found", status_code=404)
        await self.repository.delete_category(db, category)
        logger.info(f"카테고리 삭제 완료: {category_id}")
        return None
