import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.user import UserRepository
from app.schemas import (ErrorResponse, UserListResponse, UserResponse,
                         UserUpdateRequest)
from app.schemas.user import (PasswordChangeRequest, ProfileUpdateRequest,
                              ProfileUpdateResponse)
from app.utils.validation import (VALIDATION_RULES, sanitize_input,
                                  validate_field)

logger = logging.getLogger(__name__)


class UserService:
    """
    사용자 관련 비즈니스 로직을 담당하는 Service 클래스 (관리자 사용자 관리)
    """

    def __init__(self, user_repository: Optional[UserRepository] = None):
        self.user_repository = user_repository or UserRepository()

    async def get_user_by_id(
        self, db: AsyncSession, user_id: int
    ) -> tuple[Optional[UserResponse], Optional[ErrorResponse]]:
        user = await self.user_repository.get_by_id(db, user_id)
        if not user:
            return None, ErrorResponse(
                error="User not found",
                detail=f"ID가 {user_id}인 사용자가 존재하지 않습니다.",
                status_code=404,
            )
        return UserResponse.model_validate(user), None

    async def get_all_users(
        self, db: AsyncSession, skip: int = 0, limit: int = 100
    ) -> tuple[Optional[UserListResponse], Optional[ErrorResponse]]:
        try:
            users = await self.user_repository.get_all(db, skip, limit)
            total = await self.user_repository.count(db)

            user_list_response = UserListResponse(
                users=[UserResponse.model_validate(user) for user in users],
                total=total,
                skip=skip,
                limit=limit,
            )
            return user_list_response, None

        except Exception as e:
            logger.error(f"사용자 목록 조회 서비스 오류: {e}")
            return None, ErrorResponse(
                error="Failed to fetch users",
                detail=str(e),
                status_code=500,
            )

    async def update_user(
        self, db: AsyncSession, user_id: int, update_data: UserUpdateRequest
    ) -> tuple[Optional[UserResponse], Optional[ErrorResponse]]:
        update_dict = update_data.model_dump(exclude_unset=True)
        if not update_dict:
            return None, ErrorResponse(
                error="No fields to update",
                detail="최소 하나의 필드는 수정되어야 합니다.",
            )

        if "email" in update_dict:
            existing = await self.user_repository.get_by_email(db, update_dict["email"])
            if existing and existing.user_id != user_id:
                return None, ErrorResponse(error="Email already in use", status_code=409)

        if "username" in update_dict:
            existing = await self.user_repository.get_by_username(db, update_dict["username"])
            if existing and existing.user_id != user_id:
                return None, ErrorResponse(error="Username already in use", status_code=409)

        user = await self.user_repository.update(db, user_id, update_dict)
        if not user:
            return None, ErrorResponse(
                error="User not found",
                detail=f"ID가 {user_id}인 사용자의 정보를 수정할 수 없습니다.",
                status_code=404,
            )

        logger.info(f"사용자 수정 서비스 완료: {user_id}")
        return UserResponse.model_validate(user), None

    async def delete_user(self, db: AsyncSession, user_id: int) -> Optional[ErrorResponse]:
        success = await self.user_repository.delete(db, user_id)
        if not success:
            return ErrorResponse(
                error="User not found",
                detail=f"ID가 {user_id}인 사용자를 삭제할 수 없습니다.",
                status_code=404,
            )

        logger.info(f"사용자 삭제 서비스 완료: {user_id}")
        return None

    # -------------------- #
    # 본인 프로필
    # -------------------- #

    async def update_profile(
        self, db: AsyncSession, user: User, data: ProfileUpdateRequest
    ) -> tuple[Optional[ProfileUpdateResponse], Optional[ErrorResponse]]:
        """
        username / bio / avatar 수정 (변경 없음이면 저장하지 않음)
        """
        changes = {}

        if data.username is not None and data.username.strip() != user.username:
            username = data.username.strip()
            result = validate_field(username, VALIDATION_RULES["username"], "username")
            if not result.is_valid:
                return None, ErrorResponse(error="Validation failed", errors=result.errors)
            existing = await self.user_repository.get_by_username(db, username)
            if existing and existing.user_id != user.user_id:
                return None, ErrorResponse(error="Username already in use", status_code=409)
            changes["username"] = username

        if data.bio is not None:
            result = validate_field(data.bio, VALIDATION_RULES["general_text"], "bio")
            if not result.is_valid:
                return None, ErrorResponse(error="Validation failed", errors=result.errors)
            bio = sanitize_input(data.bio)
            if bio != (user.bio or ""):
                changes["bio"] = bio

        if data.avatar is not None and data.avatar != (user.avatar or ""):
            changes["avatar"] = data.avatar

        if not changes:
            return ProfileUpdateResponse(
                message="No changes needed", user=UserResponse.model_validate(user)
            ), None

        updated = await self.user_repository.update(db, user.user_id, changes)
        if not updated:
            return None, ErrorResponse(error="Failed to update profile", status_code=500)

        logger.info(f"프로필 수정 완료: {user.user_id} ({', '.join(changes)})")
        return ProfileUpdateResponse(
            message="Profile updated successfully", user=UserResponse.model_validate(updated)
        ), None

    async def change_password(
        self, db: AsyncSession, user: User, data: PasswordChangeRequest
    ) -> Optional[ErrorResponse]:
        if not data.current_password or not data.new_password:
            return ErrorResponse(error="Current password and new password are required")

        if not user.verify_password(data.current_password):
            logger.warning(f"비밀번호 변경 실패: 현재 비밀번호 불일치 (user={user.user_id})")
            return ErrorResponse(error="Current password is incorrect")

        result = validate_field(
            data.new_password, VALIDATION_RULES["password"], "password", {"email": user.email}
        )
        if not result.is_valid:
            return ErrorResponse(error="Validation failed", errors=result.errors)

        if data.new_password == data.current_password:
            return ErrorResponse(error="New password must be different from the current password")

        updated = await self.user_repository.update(db, user.user_id, {"password": data.new_password})
        if not updated:
            return ErrorResponse(error="Failed to update password", status_code=500)

        logger.info(f"비밀번호 변경 완료: {user.user_id}")
        return None
