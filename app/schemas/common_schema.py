from typing import Generic, Optional, TypeVar
from fastapi import Query
from pydantic import BaseModel, model_serializer
from app.core.config import settings

T = TypeVar("T")

class ApiResponse(BaseModel, Generic[T]):
    """所有 API 共用的回應外層：{ success, data?, message?, count? }"""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    count: Optional[int] = None

    @model_serializer(mode="wrap")
    def _drop_empty_keys(self, handler):
        # 只省略外層沒有值的 data / message / count，data 內部的 null 欄位照常輸出
        body = handler(self)
        return {key: value for key, value in body.items() if key == "success" or value is not None}


class Pagination:
    """列表 API 共用的 limit / offset 參數 (FastAPI 依賴項)"""

    def __init__(
        self,
        limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
        offset: int = Query(0, ge=0)
    ):
        self.limit = limit
        self.offset = offset
