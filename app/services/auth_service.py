# app/services/auth_service.py
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from app.core.config import settings
from app.core.security import (
    verify_password, get_password_hash, create_access_token,
    create_refresh_token, decode_refresh_token, utc_now
)
from app.models.user import User, UserRoleEnum
from app.repositories.user_repo import UserRepository
from app.repositories.refresh_token_repo import RefreshTokenRepository
from app.schemas.user_schema import UserCreate
from app.services.profile_service import ProfileService

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession):
        self.user_repo = UserRepository(db)
        self.token_repo = RefreshTokenRepository(db)

    async def authenticate_user(self, email: str, password: str) -> User | None:
        """
        驗證使用者帳號密碼。
        成功回傳 User 物件，失敗回傳 None。
        """
        user = await self.user_repo.get_user_by_email(email)

        # 1. 檢查使用者是否存在
        if not user:
            return None

        # 2. 檢查密碼是否正確
        if not verify_password(plain_password=password, hashed_password=user.password_hash):
            return None

        return user

    async def login(self, email: str, password: str) -> dict:
        user = await self.authenticate_user(email, password)
        if user is None:
            logger.info("Login failed for %s", email)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )
        # 檢查是否被停權
        if not user.is_active:
            logger.info("Login refused for deactivated user %s", user.id)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is deactivated")

        logger.info("User logged in: %s", user.id)
        return await self.issue_tokens(user)

    async def register_user(self, user_create: UserCreate) -> dict:
        """
        處理使用者註冊：建立 User 與對應角色的 Profile，並簽發 Token
        """
        # 1. 檢查 Email 是否已被註冊
        existing_user = await self.user_repo.get_user_by_email(user_create.email)
        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="User with this email already exists",
            )

        # 2. 建立 User ORM 模型 (密碼雜湊使用 security.py 中的函式)
        new_user = User(
            email=user_create.email,
            password_hash=get_password_hash(user_create.password),
            role=UserRoleEnum(user_create.role),
            first_name=user_create.first_name,
            last_name=user_create.last_name,
            phone=user_create.phone,
            country=user_create.country,
        )
        ProfileService.attach_profile(new_user, user_create.profile)

        # 3. 呼叫 Repository 儲存到資料庫 (User + Profile 同一次 commit)
        created_user = await self.user_repo.create_user(new_user)
        logger.info("User registered: %s (%s)", created_user.id, created_user.role.value)

        return await self.issue_tokens(created_user)

    async def issue_tokens(self, user: User) -> dict:
        """
        為指定使用者建立 access token 與 refresh token (refresh token 會存入資料庫)
        """
        access_token = create_access_token(user)
        refresh_token, expires_at = create_refresh_token(user.id)
        await self.token_repo.save_token(user.id, refresh_token, expires_at)
        return {
            "user": user,
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
        }

    async def refresh_access_token(self, refresh_token: Optional[str]) -> dict:
        """
        以有效 (未撤銷、未過期) 的 refresh token 換發新的 access token
        """
        if not refresh_token:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token required")

        invalid = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

        user_id = decode_refresh_token(refresh_token)
        if user_id is None:
            raise invalid

        stored = await self.token_repo.get_valid_token(refresh_token, user_id, utc_now())
        if stored is None:
            raise invalid

        user = await self.user_repo.get_user_by_id(user_id)
        if user is None or not user.is_active:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

        result = {"access_token": create_access_token(user), "token_type": "bearer"}

        if settings.REFRESH_TOKEN_ROTATION:
            # 輪替：舊的 refresh token 作廢，發一組新的
            await self.token_repo.revoke_token(refresh_token, user_id)
            new_refresh_token, expires_at = create_refresh_token(user.id)
            await self.token_repo.save_token(user.id, new_refresh_token, expires_at)
            result["refresh_token"] = new_refresh_token

        logger.info("Access token refreshed for user %s", user.id)
        return result

    async def logout(self, refresh_token: Optional[str]) -> None:
        """
        撤銷單一 refresh token。
        Token 無效或已過期時不報錯，讓使用者仍然可以登出。
        """
        if not refresh_token:
            return
        user_id = decode_refresh_token(refresh_token)
        if user_id is None:
            logger.info("Invalid refresh token presented on logout")
            return
        revoked = await self.token_repo.revoke_token(refresh_token, user_id)
        logger.info("Refresh token revoked for user %s (%d row)", user_id, revoked)

    async def logout_all(self, user: User) -> int:
        revoked = await self.token_repo.revoke_all_for_user(user.id)
        logger.info("All refresh tokens revoked for user %s (%d rows)", user.id, revoked)
        return revoked
