# app/core/config.py
# 應用程式設定 (資料庫連線字串、JWT 秘鑰、CORS 等)
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # 資料庫設定
    DATABASE_URL: str
    DB_ECHO: bool = False
    # 啟動時自動建立資料表 (僅限本機開發)
    DB_AUTO_CREATE: bool = False

    # JWT 設定
    JWT_SECRET_KEY: str
    # Refresh Token 使用獨立的秘鑰
    JWT_REFRESH_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    # 存取令牌過期時間（分鐘）
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    # 更新令牌過期時間（天）
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    # 為 True 時，/auth/refresh 會撤銷舊的 refresh token 並發一組新的
    REFRESH_TOKEN_ROTATION: bool = False

    # 應用程式
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"

    # 分頁
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 100

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"

    # 環境變數檔案
    class Config:
        env_file = ".env"

# 建立設定實例
settings = Settings()
