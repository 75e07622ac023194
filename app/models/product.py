from typing import Dict, Optional

from sqlalchemy import Column, JSON
from sqlmodel import Field

from app.models.base import BaseModel

DEFAULT_OUT_OF_STOCK_MESSAGE = {"en": "Out of stock", "ar": "نفذت الكمية"}


class ProductCategory(BaseModel, table=True):
    """
    상품 카테고리 (상품은 slug 로 참조)
    """

    __tablename__ = "product_categories"

    category_id: Optional[int] = Field(
        default=None,
        primary_key=True,
        sa_column_kwargs={"autoincrement": True},
    )

    name: Dict[str, str] = Field(sa_column=Column(JSON, nullable=False))

    slug: str = Field(max_length=100, nullable=False, sa_column_kwargs={"unique": True})

    sort_order: int = Field(default=0)

    is_active: bool = Field(default=True)


class Product(BaseModel, table=True):
    """
    스토어 상품
    - name / description / out_of_stock_message 는 {"en": ..., "ar": ...} 다국어 JSON
    - sale_price 가 0 이면 할인 없음
    - 디지털 상품은 재고를 차감하지 않음
    """

    __tablename__ = "products"

    product_id: Optional[int] = Field(
        default=None,
        primary_key=True,
        sa_column_kwargs={"autoincrement": True},
    )

    name: Dict[str, str] = Field(sa_column=Column(JSON, nullable=False))

    description: Dict[str, str] = Field(sa_column=Column(JSON, nullable=False))

    price: float = Field(nullable=False)

    sale_price: float = Field(default=0)

    image_url: Optional[str] = Field(default=None, max_length=500)

    category: Optional[str] = Field(default=None, max_length=100, index=True)

    is_featured: bool = Field(default=False)

    stock: int = Field(default=0)

    is_digital: bool = Field(default=False)

    download_url: Optional[str] = Field(default=None, max_length=500)

    out_of_stock: bool = Field(default=False)

    out_of_stock_message: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_OUT_OF_STOCK_MESSAGE),
        sa_column=Column(JSON, nullable=False),
    )

    def effective_price(self) -> float:
        if self.sale_price and 0 < self.sale_price < self.price:
            return self.sale_price
        return self.price
