import logging
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from app.models.user import User
from app.utils.datetime import utc_now_naive

logger = logging.getLogger(__name__)


class UserRepository:
    """
    사용자 데이터베이스 접근을 담당하는 Repository 클래스
    """

    async def create(self, db: AsyncSession, user_data: dict) -> Optional[User]:
        """
        새로운 사용자를 생성합니다.

        Args:
            db: 데이터베이스 세션
            user_data: 사용자 생성 데이터 (username, email, password, role?)

        Returns:
            생성된 사용자 객체 또는 None (중복/DB 오류)
        """
        try:
            if await self.exists_by_email(db, user_data["email"]):
                logger.warning(f"이미 존재하는 이메일: {user_data['email']}")
                return None

            role = user_data.get("role") or "user"
            user = User(
                username=user_data["username"],
                email=user_data["email"],
                password_hash=User.hash_password(user_data["password"]),
                role=role,
                roles=[role],
            )

            db.add(user)
            await db.commit()
            await db.refresh(user)

            logger.info(f"사용자 생성 완료: {user.email}")
            return user

        except IntegrityError as ie:
            await db.rollback()
            logger.error(f"사용자 생성 무결성 오류 (email={user_data.get('email')}): {ie}")
            return None
        except Exception as e:
            await db.rollback()
            logger.error(f"사용자 생성 오류: {e}")
            return None

    async def get_by_id(self, db: AsyncSession, user_id: int) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.user_id == user_id))
            user = result.scalars().first()

            if not user:
                logger.warning(f"사용자 ID를 찾을 수 없음: {user_id}")

            return user

        except Exception as e:
            await db.rollback()
            logger.error(f"사용자 ID 조회 오류 (user_id={user_id}): {e}")
            return None

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.email == email))
            return result.scalars().first()

        except Exception as e:
            await db.rollback()
            logger.error(f"사용자 이메일 조회 오류 (email={email}): {e}")
            return None

    async def get_by_username(self, db: AsyncSession, username: str) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.username == username))
            return result.scalars().first()

        except Exception as e:
            await db.rollback()
            logger.error(f"사용자명 조회 오류 (username={username}): {e}")
            return None

    async def get_all(self, db: AsyncSession, skip: int = 0, limit: int = 100) -> List[User]:
        """
        모든 사용자를 조회합니다 (페이징 지원, 최신순).
        """
        try:
            result = await db.execute(
                select(User).order_by(User.created_at.desc(), User.user_id.desc()).offset(skip).limit(limit)
            )
            users = list(result.scalars().all())

            logger.info(f"사용자 목록 조회 완료: {len(users)}명")
            return users

        except Exception as e:
            await db.rollback()
            logger.error(f"사용자 목록 조회 오류: {e}")
            return []

    async def count(self, db: AsyncSession) -> int:
        result = await db.execute(select(func.count()).select_from(User))
        return result.scalar() or 0

    async def update(self, db: AsyncSession, user_id: int, update_data: dict) -> Optional[User]:
        """
        사용자 정보를 수정합니다.
        허용 필드: username, email, bio, avatar, is_active, password -> password_hash
        """
        try:
            user = await self.get_by_id(db, user_id)
            if not user:
                logger.warning(f"수정할 사용자를 찾을 수 없음: {user_id}")
                return None

            if "password" in update_data and update_data["password"]:
                update_data["password_hash"] = User.hash_password(update_data.pop("password"))

            allowed_fields = {"username", "email", "bio", "avatar", "is_active", "password_hash"}
            for key, value in update_data.items():
                if key in allowed_fields:
                    setattr(user, key, value)
            user.updated_at = utc_now_naive()

            await db.commit()
            await db.refresh(user)

            logger.info(f"사용자 정보 수정 완료: {user_id}")
            return user

        except IntegrityError as ie:
            await db.rollback()
            logger.error(f"사용자 정보 수정 무결성 오류 (user_id={user_id}): {ie}")
            return None
        except Exception as e:
            await db.rollback()
            logger.error(f"사용자 정보 수정 오류 (user_id={user_id}): {e}")
            return None

    async def set_roles(self, db: AsyncSession, user: User, role_ids: List[str]) -> User:
        """
        역할 목록을 통째로 교체합니다. 대표 role 은 첫 번째 역할 (없으면 user)
        """
        try:
            # JSON 컬럼은 변경 추적이 안 되므로 새 리스트를 할당
            user.roles = list(role_ids)
            user.role = role_ids[0] if role_ids else "user"
            user.updated_at = utc_now_naive()
            await db.commit()
            await db.refresh(user)
            return user

        except Exception as e:
            await db.rollback()
            logger.error(f"사용자 역할 수정 오류 (user_id={user.user_id}): {e}")
            raise

    async def delete(self, db: AsyncSession, user_id: int) -> bool:
        try:
            user = await self.get_by_id(db, user_id)
            if not user:
                logger.warning(f"삭제할 사용자를 찾을 수 없음: {user_id}")
                return False

            await db.delete(user)
            await db.commit()

            logger.info(f"사용자 삭제 완료: {user_id}")
            return True

        except Exception as e:
            await db.rollback()
            logger.error(f"사용자 삭제 오류 (user_id={user_id}): {e}")
            return False

    async def exists_by_email(self, db: AsyncSession, email: str) -> bool:
        try:
            result = await db.execute(
                select(func.count()).select_from(User).where(User.email == email)
            )
            return (result.scalar() or 0) > 0

        except Exception as e:
            await db.rollback()
            logger.error(f"이메일 존재 여부 확인 오류 (email={email}): {e}")
            return False

    async def exists_by_email_or_username(self, db: AsyncSession, email: str, username: str) -> bool:
        try:
            result = await db.execute(
                select(func.count()).select_from(User).where(
                    or_(User.email == email, User.username == username)
                )
            )
            return (result.scalar() or 0) > 0

        except Exception as e:
            await db.rollback()
            logger.error(f"사용자 중복 확인 오류 (email={email}, username={username}): {e}")
            return False
