# app/repositories/user_repo.py
# 負責與使用者相關的資料庫操作
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.models.user import User, UserRoleEnum

class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> User | None:
        """
        透過 email 查詢使用者
        """
        stmt = select(User).where(User.email == email)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_user_by_id(self, user_id: str) -> User | None:
        """
        透過 id 查詢使用者 (Profile 由 lazy="selectin" 一併載入)
        """
        stmt = select(User).where(User.id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_users(
        self,
        role: Optional[UserRoleEnum] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[User]:
        stmt = select(User)
        if role is not None:
            stmt = stmt.where(User.role == role)
        stmt = stmt.order_by(User.created_at.desc(), User.id).limit(limit).offset(offset)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def create_user(self, user: User) -> User:
        """
        新增使用者到資料庫 (掛在 relationship 上的 Profile 會在同一次 commit 中寫入)
        """
        self.db.add(user)
        await self.db.commit()
        return await self._reload(user.id)

    async def update_user(self, user: User) -> User:
        await self.db.commit()
        return await self._reload(user.id)

    async def _reload(self, user_id: str) -> User:
        # populate_existing：以資料庫最新值覆蓋，並重新執行 Profile / 技能的 eager loading
        stmt = select(User).where(User.id == user_id).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def delete_user(self, user: User) -> None:
        """
        刪除使用者 (Profile、案件、提案依外鍵 CASCADE 一併刪除)
        """
        await self.db.delete(user)
        await self.db.commit()
