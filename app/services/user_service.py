# app/services/user_service.py
import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from app.core.security import get_password_hash, is_admin
from app.models.user import User, UserRoleEnum
from app.repositories.user_repo import UserRepository
from app.schemas.user_schema import AdminUserCreate, UserUpdate
from app.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

# 只有管理員可以修改的欄位
ADMIN_ONLY_FIELDS = ("is_active", "is_verified")


class UserService:
    def __init__(self, db: AsyncSession):
        self.user_repo = UserRepository(db)

    async def list_users(self, role: Optional[UserRoleEnum], limit: int, offset: int) -> List[User]:
        return await self.user_repo.list_users(role=role, limit=limit, offset=offset)

    async def get_user(self, user_id: str) -> User:
        user = await self.user_repo.get_user_by_id(user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user

    async def create_user(self, data: AdminUserCreate) -> User:
        """
        (管理員) 建立使用者，可指定任何角色
        """
        if await self.user_repo.get_user_by_email(data.email):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")

        user = User(
            email=data.email,
            password_hash=get_password_hash(data.password),
            role=data.role,
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            country=data.country,
        )
        ProfileService.attach_profile(user, data.profile)
        created = await self.user_repo.create_user(user)
        logger.info("User %s created by admin", created.id)
        return created

    def _ensure_self_or_admin(self, target_id: str, current_user: User) -> None:
        if current_user.id != target_id and not is_admin(current_user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only access your own resources",
            )

    async def update_user(self, user_id: str, update_data: UserUpdate, current_user: User) -> User:
        """
        本人或管理員更新使用者基本資料與 Profile
        """
        self._ensure_self_or_admin(user_id, current_user)
        user = await self.get_user(user_id)

        data = update_data.model_dump(exclude_unset=True, exclude={"profile"})
        if not is_admin(current_user) and any(field in data for field in ADMIN_ONLY_FIELDS):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only admins can change account status",
            )

        # 只更新有傳入的欄位
        for key, value in data.items():
            setattr(user, key, value)

        if update_data.profile is not None:
            ProfileService.apply_profile_update(user, update_data.profile)

        return await self.user_repo.update_user(user)

    async def delete_user(self, user_id: str, current_user: User) -> None:
        self._ensure_self_or_admin(user_id, current_user)
        user = await self.get_user(user_id)
        await self.user_repo.delete_user(user)
        logger.info("User %s deleted by %s", user_id, current_user.id)
