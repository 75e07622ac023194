import logging
from typing import List, Optional

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.coupon import Coupon, CouponUsage
from app.utils.datetime import utc_now_naive

logger = logging.getLogger(__name__)

COUPON_FIELDS = (
    "code", "description", "discount_type", "discount_value", "min_purchase_amount",
    "max_discount_amount", "valid_from", "valid_until", "usage_limit", "user_limit",
    "is_active", "applicable_categories", "applicable_products",
)


class CouponRepository:
    """
    쿠폰 / 쿠폰 사용 기록 저장소
    """

    async def get(self, db: AsyncSession, coupon_id: int) -> Optional[Coupon]:
        return await db.get(Coupon, coupon_id)

    async def get_by_code(self, db: AsyncSession, code: str) -> Optional[Coupon]:
        result = await db.execute(select(Coupon).where(Coupon.code == code.strip().upper()))
        return result.scalars().first()

    async def get_all(self, db: AsyncSession) -> List[Coupon]:
        result = await db.execute(select(Coupon).order_by(Coupon.created_at.desc(), Coupon.coupon_id.desc()))
        return list(result.scalars().all())

    async def create(self, db: AsyncSession, coupon: Coupon) -> Coupon:
        try:
            db.add(coupon)
            await db.commit()
            await db.refresh(coupon)
        except Exception as e:
            await db.rollback()
            logger.error(f"쿠폰 생성 오류 (code={coupon.code}): {e}")
            raise

        logger.info(f"쿠폰 생성 완료: {coupon.code}")
        return coupon

    async def update(self, db: AsyncSession, coupon: Coupon, update_data: dict) -> Coupon:
        try:
            for key in COUPON_FIELDS:
                if key in update_data:
                    value = update_data[key]
                    if isinstance(value, list):
                        value = list(value)
                    setattr(coupon, key, value)
            coupon.updated_at = utc_now_naive()
            await db.commit()
            await db.refresh(coupon)
        except Exception as e:
            await db.rollback()
            logger.error(f"쿠폰 수정 오류 (id={coupon.coupon_id}): {e}")
            raise
        return coupon

    async def delete(self, db: AsyncSession, coupon: Coupon) -> None:
        try:
            await db.execute(delete(CouponUsage).where(CouponUsage.coupon_id == coupon.coupon_id))
            await db.delete(coupon)
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"쿠폰 삭제 오류 (id={coupon.coupon_id}): {e}")
            raise
        logger.info(f"쿠폰 삭제 완료: {coupon.code}")

    async def count_user_usages(self, db: AsyncSession, coupon_id: int, user_id: int) -> int:
        result = await db.execute(
            select(func.count()).select_from(CouponUsage)
            .where(CouponUsage.coupon_id == coupon_id, CouponUsage.user_id == user_id)
        )
        return result.scalar() or 0

    async def record_usage(
        self, db: AsyncSession, coupon: Coupon, user_id: int, order_id: str, discount_amount: float
    ) -> CouponUsage:
        usage = CouponUsage(
            coupon_id=coupon.coupon_id,
            user_id=user_id,
            order_id=order_id,
            discount_amount=discount_amount,
        )
        try:
            coupon.usage_count += 1
            coupon.updated_at = utc_now_naive()
            db.add(usage)
            await db.commit()
            await db.refresh(usage)
        except Exception as e:
            await db.rollback()
            logger.error(f"쿠폰 사용 기록 오류 (code={coupon.code}, order={order_id}): {e}")
            raise
        return usage
