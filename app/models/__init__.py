"""
데이터 모델 모듈

SQLModel 테이블 모델들을 정의합니다.
데이터베이스 테이블 구조를 정의합니다.
"""
from app.models.user import User
from app.models.role import Role
from app.models.security import BlockedIP, SecurityEventRecord
from app.models.setting import SiteSetting
from app.models.job import ApplicationStatus, Job, JobApplication
from app.models.product import Product, ProductCategory
from app.models.coupon import Coupon, CouponUsage, DiscountType
from app.models.order import (DeliveryMethod, MessageType, Order, OrderStatus,
                              PaymentMethod, UserMessage)
from app.models.content import (ContactMessage, ContactStatus, PageContent,
                                Rule, RuleCategory)

__all__ = [
    "User",
    "Role",
    "BlockedIP",
    "SecurityEventRecord",
    "SiteSetting",
    "Job",
    "JobApplication",
    "ApplicationStatus",
    "Product",
    "ProductCategory",
    "Coupon",
    "CouponUsage",
    "DiscountType",
    "Order",
    "OrderStatus",
    "PaymentMethod",
    "DeliveryMethod",
    "UserMessage",
    "MessageType",
    "PageContent",
    "ContactMessage",
    "ContactStatus",
    "RuleCategory",
    "Rule",
]
