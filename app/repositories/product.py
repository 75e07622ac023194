import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.product import Product, ProductCategory
from app.utils.datetime import utc_now_naive

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = (
    "name", "description", "price", "sale_price", "image_url", "category", "is_featured",
    "stock", "is_digital", "download_url", "out_of_stock", "out_of_stock_message",
)

CATEGORY_FIELDS = ("name", "slug", "sort_order", "is_active")


class ProductRepository:
    """
    상품 / 카테고리 저장소
    """

    async def _save(self, db: AsyncSession, obj, label: str):
        try:
            db.add(obj)
            await db.commit()
            await db.refresh(obj)
        except Exception as e:
            await db.rollback()
            logger.error(f"{label} 저장 오류: {e}")
            raise
        return obj

    # -------------------- #
    # 상품
    # -------------------- #

    async def get_product(self, db: AsyncSession, product_id: int) -> Optional[Product]:
        product = await db.get(Product, product_id)
        if product is None or product.is_deleted:
            return None
        return product

    async def get_products(
        self,
        db: AsyncSession,
        category: Optional[str] = None,
        featured: Optional[bool] = None,
        limit: Optional[int] = None,
    ) -> List[Product]:
        stmt = select(Product).where(Product.is_deleted.is_(False))
        if category:
            stmt = stmt.where(Product.category == category)
        if featured is not None:
            stmt = stmt.where(Product.is_featured.is_(featured))
        stmt = stmt.order_by(Product.created_at.desc(), Product.product_id.desc())
        if limit:
            stmt = stmt.limit(limit)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def create_product(self, db: AsyncSession, product: Product) -> Product:
        product = await self._save(db, product, "상품")
        logger.info(f"상품 생성 완료: {product.product_id}")
        return product

    async def update_product(self, db: AsyncSession, product: Product, update_data: dict) -> Product:
        for key in PRODUCT_FIELDS:
            if key in update_data and update_data[key] is not None:
                setattr(product, key, update_data[key])
        product.updated_at = utc_now_naive()
        return await self._save(db, product, f"상품({product.product_id})")

    async def delete_product(self, db: AsyncSession, product: Product) -> None:
        product.is_deleted = True
        product.updated_at = utc_now_naive()
        await self._save(db, product, f"상품({product.product_id})")
        logger.info(f"상품 삭제 완료: {product.product_id}")

    async def decrement_stock(self, db: AsyncSession, product_id: int, quantity: int) -> Optional[Product]:
        """
        재고 차감 (0 미만으로 내려가지 않음, 0 이 되면 품절 표시)
        """
        product = await self.get_product(db, product_id)
        if product is None:
            return None
        product.stock = max(0, product.stock - quantity)
        if product.stock == 0:
            product.out_of_stock = True
        product.updated_at = utc_now_naive()
        return await self._save(db, product, f"상품 재고({product_id})")

    # -------------------- #
    # 카테고리
    # -------------------- #

    async def get_category(self, db: AsyncSession, category_id: int) -> Optional[ProductCategory]:
        return await db.get(ProductCategory, category_id)

    async def get_category_by_slug(self, db: AsyncSession, slug: str) -> Optional[ProductCategory]:
        result = await db.execute(select(ProductCategory).where(ProductCategory.slug == slug))
        return result.scalars().first()

    async def get_categories(self, db: AsyncSession, active_only: bool = True) -> List[ProductCategory]:
        stmt = select(ProductCategory)
        if active_only:
            stmt = stmt.where(ProductCategory.is_active.is_(True))
        result = await db.execute(stmt.order_by(ProductCategory.sort_order, ProductCategory.category_id))
        return list(result.scalars().all())

    async def create_category(self, db: AsyncSession, category: ProductCategory) -> ProductCategory:
        return await self._save(db, category, "카테고리")

    async def update_category(
        self, db: AsyncSession, category: ProductCategory, update_data: dict
    ) -> ProductCategory:
        for key in CATEGORY_FIELDS:
            if key in update_data and update_data[key] is not None:
                setattr(category, key, update_data[key])
        category.updated_at = utc_now_naive()
        return await self._save(db, category, f"카테고리({category.category_id})")

    async def delete_category(self, db: AsyncSession, category: ProductCategory) -> None:
        try:
            await db.delete(category)
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"카테고리 삭제 오류 (id={category.category_id}): {e}")
            raise
