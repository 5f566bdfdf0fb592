# app/routers/health_router.py
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(request: Request):
    """
    健康檢查：確認 API 與資料庫連線
    """
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        await request.app.state.database.ping()
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Health check failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "success": False,
                "message": "Service unavailable",
                "timestamp": timestamp,
                "database": "disconnected",
            },
        )
    return {
        "success": True,
        "message": "API is running",
        "timestamp": timestamp,
        "database": "connected",
    }
