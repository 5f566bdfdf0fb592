import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import Database
from app.core.errors import register_exception_handlers
from app.routers import (
    auth_router, user_router,
    project_router, contract_router, health_router
)

# 單獨匯入 "proposal_router.py" 檔案中的 *兩個* router
from app.routers.proposal_router import (
    router as proposal_main_router,  # 將 router 重新命名
    project_proposal_router as proposal_project_router # 將 project_proposal_router 重新命名
)

# --- 匯入所有 Model 檔案 ---
# 都在應用程式啟動時被 SQLAlchemy 註冊。
from app.models import user
from app.models import client_profile
from app.models import freelancer_profile
from app.models import skill
from app.models import project
from app.models import proposal
from app.models import contract
from app.models import payment
from app.models import review
from app.models import message
from app.models import refresh_token


# 設定基礎日誌
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__) # 建立一個 logger 實例


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    啟動時建立資料庫連線池並放在 app.state；關閉時釋放
    """
    database = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    app.state.database = database
    if settings.DB_AUTO_CREATE:
        logger.info("DB_AUTO_CREATE is set, creating tables")
        await database.create_all()
    logger.info("Application started (env=%s)", settings.APP_ENV)
    try:
        yield
    finally:
        await database.dispose()
        logger.info("Database connection pool disposed")


app = FastAPI(title="Freelance Marketplace API", lifespan=lifespan)

# --- 設定 CORS (跨來源資源共用) ---
# 生產環境請在 CORS_ORIGINS 指定前端網域 (e.g. 'http://localhost:5173')
cors_origins = settings.cors_origins_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    # 允許所有來源時不能同時帶 credentials
    allow_credentials="*" not in cors_origins,
    allow_methods=["*"], # 允許所有 HTTP 方法
    allow_headers=["*"], # 允許所有 HTTP 標頭
)

# --- 統一錯誤格式 ---
register_exception_handlers(app)

# --- 根路徑 ---
@app.get("/")
def read_root():
    return {"success": True, "message": "Backend is running!"}

# --- 載入 API 路由 ---
app.include_router(health_router.router)
app.include_router(auth_router.router)
app.include_router(user_router.router)
app.include_router(project_router.router)
app.include_router(proposal_main_router)
app.include_router(proposal_project_router)
app.include_router(contract_router.router)
