from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class BilingualText(BaseModel):
    """
    영어/아랍어 텍스트 (둘 다 필요한지는 서비스에서 검사)
    """
    en: str = ""
    ar: str = ""


class ProductCreateRequest(BaseModel):
    name: BilingualText
    description: BilingualText
    price: float = Field(..., gt=0)
    sale_price: float = Field(0, ge=0)
    image_url: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, max_length=100)
    is_featured: bool = False
    stock: int = Field(0, ge=0)
    is_digital: bool = False
    download_url: Optional[str] = Field(None, max_length=500)
    out_of_stock: bool = False
    out_of_stock_message: Optional[BilingualText] = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": {"en": "VIP Rank", "ar": "رتبة VIP"},
                "description": {"en": "Monthly VIP rank", "ar": "رتبة VIP شهرية"},
                "price": 9.99,
                "category": "ranks",
                "is_digital": True,
            }
        }


class ProductUpdateRequest(BaseModel):
    name: Optional[BilingualText] = None
    description: Optional[BilingualText] = None
    price: Optional[float] = Field(None, gt=0)
    sale_price: Optional[float] = Field(None, ge=0)
    image_url: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, max_length=100)
    is_featured: Optional[bool] = None
    stock: Optional[int] = Field(None, ge=0)
    is_digital: Optional[bool] = None
    download_url: Optional[str] = Field(None, max_length=500)
    out_of_stock: Optional[bool] = None
    out_of_stock_message: Optional[BilingualText] = None


class ProductResponse(BaseModel):
    product_id: int
    name: Dict[str, str]
    description: Dict[str, str]
    price: float
    sale_price: float = 0
    image_url: Optional[str] = None
    category: Optional[str] = None
    is_featured: bool = False
    stock: int = 0
    is_digital: bool = False
    out_of_stock: bool = False
    out_of_stock_message: Dict[str, str] = Field(default_factory=dict)
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CategoryCreateRequest(BaseModel):
    name: BilingualText
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")
    sort_order: int = 0
    is_active: bool = True


class CategoryUpdateRequest(BaseModel):
    name: Optional[BilingualText] = None
    slug: Optional[str] = Field(None, min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryResponse(BaseModel):
    category_id: int
    name: Dict[str, str]
    slug: str
    sort_order: int
    is_active: bool

    class Config:
        from_attributes = True


class ProductListResponse(BaseModel):
    products: List[ProductResponse]
    total: int
