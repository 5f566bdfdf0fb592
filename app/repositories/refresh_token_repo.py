# app/repositories/refresh_token_repo.py
# 伺服器端 refresh token 的保存與撤銷
from datetime import datetime
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.models.refresh_token import RefreshToken

class RefreshTokenRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def save_token(self, user_id: str, token: str, expires_at: datetime) -> RefreshToken:
        db_token = RefreshToken(user_id=user_id, token=token, expires_at=expires_at)
        self.db.add(db_token)
        await self.db.commit()
        return db_token

    async def get_valid_token(self, token: str, user_id: str, now: datetime) -> RefreshToken | None:
        """
        查詢尚未撤銷且未過期的 refresh token
        """
        stmt = select(RefreshToken).where(
            RefreshToken.token == token,
            RefreshToken.user_id == user_id,
            RefreshToken.revoked.is_(False),
            RefreshToken.expires_at > now
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def revoke_token(self, token: str, user_id: str) -> int:
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token == token, RefreshToken.user_id == user_id)
            .values(revoked=True)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount

    async def revoke_all_for_user(self, user_id: str) -> int:
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
            .values(revoked=True)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount
