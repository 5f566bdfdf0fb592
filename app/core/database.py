# app/core/database.py
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base

logger = logging.getLogger(__name__)

# 建立 ORM Model 基底類別
Base = declarative_base()


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite 預設不檢查外鍵，連線時手動開啟"""
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class Database:
    """
    資料庫連線池的持有者。

    由 app/main.py 的 lifespan 明確建立並放在 app.state.database，
    再透過 get_db 依賴注入給各個 router。

    重建策略：
    - 引擎使用 pool_pre_ping，每次取連線前先 PING。
    - 若請求中出現「連線已失效」的 DB-API 錯誤，呼叫 reset() 清空連線池，
      下一次取連線時會重新建立。
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: AsyncEngine = self._create_engine()
        self.session_factory = self._create_session_factory()

    def _create_engine(self) -> AsyncEngine:
        engine = create_async_engine(
            self.url,
            pool_pre_ping=True, # 每次從連線池取連線前，先 PING 一次，確保連線有效
            echo=self.echo,
        )
        if engine.dialect.name == "sqlite":
            _enable_sqlite_foreign_keys(engine)
        return engine

    def _create_session_factory(self):
        return sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def reset(self) -> None:
        """丟棄目前連線池中的所有連線"""
        logger.warning("Database connection invalidated, disposing connection pool")
        await self.engine.dispose()

    async def dispose(self) -> None:
        await self.engine.dispose()

    async def create_all(self) -> None:
        """依 ORM metadata 建立資料表 (已存在則略過)"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        async with self.engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.scalar() == 1


# (重要) 取得 DB Session 的 Dependency
async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI Dependency: 取得非同步資料庫 session"""
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
        except DBAPIError as exc:
            if exc.connection_invalidated:
                await database.reset()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    在單一交易中執行多個寫入：成功時 commit，任何例外都 rollback。

    前置檢查的查詢會讓 session 自動開啟一個隱含交易，
    這裡先把它結束，再開啟明確的交易範圍。
    """
    if session.in_transaction():
        await session.commit()
    async with session.begin():
        yield session
