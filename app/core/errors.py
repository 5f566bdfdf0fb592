# app/core/errors.py
# 統一錯誤回應格式：{ "success": false, "message": ..., "errors"?: [...] }
import logging
from typing import Optional, Tuple

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DataError, IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings

logger = logging.getLogger(__name__)

DUPLICATE_ENTRY = (status.HTTP_409_CONFLICT, "Duplicate entry")
INVALID_REFERENCE = (status.HTTP_400_BAD_REQUEST, "Invalid reference")
MISSING_FIELD = (status.HTTP_400_BAD_REQUEST, "Missing required field")
CHECK_VIOLATION = (status.HTTP_400_BAD_REQUEST, "Value violates constraint")
INVALID_FORMAT = (status.HTTP_400_BAD_REQUEST, "Invalid data format")
DATA_TOO_LONG = (status.HTTP_400_BAD_REQUEST, "Data too long")

# PostgreSQL SQLSTATE
_PG_CODES = {
    "23505": DUPLICATE_ENTRY,
    "23503": INVALID_REFERENCE,
    "23502": MISSING_FIELD,
    "23514": CHECK_VIOLATION,
    "22P02": INVALID_FORMAT,
    "22007": INVALID_FORMAT,
    "22003": INVALID_FORMAT,
    "22001": DATA_TOO_LONG,
}

# MySQL errno
_MYSQL_CODES = {
    1062: DUPLICATE_ENTRY,
    1451: INVALID_REFERENCE,
    1452: INVALID_REFERENCE,
    1048: MISSING_FIELD,
    1364: MISSING_FIELD,
    3819: CHECK_VIOLATION,
    1406: DATA_TOO_LONG,
    1264: INVALID_FORMAT,
    1292: INVALID_FORMAT,
    1366: INVALID_FORMAT,
}

# SQLite 沒有錯誤代碼，只能比對訊息
_SQLITE_MESSAGES = (
    ("UNIQUE constraint failed", DUPLICATE_ENTRY),
    ("FOREIGN KEY constraint failed", INVALID_REFERENCE),
    ("NOT NULL constraint failed", MISSING_FIELD),
    ("CHECK constraint failed", CHECK_VIOLATION),
)


def _driver_code(orig) -> Optional[object]:
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code:
        return code
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


def map_db_error(exc: Exception) -> Optional[Tuple[int, str]]:
    """
    將資料庫例外對應到 (HTTP 狀態碼, 訊息)；無法辨識時回傳 None
    """
    orig = getattr(exc, "orig", None)
    code = _driver_code(orig)

    if isinstance(code, str) and code in _PG_CODES:
        return _PG_CODES[code]
    if isinstance(code, int) and code in _MYSQL_CODES:
        return _MYSQL_CODES[code]

    text = str(orig if orig is not None else exc)
    for needle, mapped in _SQLITE_MESSAGES:
        if needle in text:
            return mapped

    if isinstance(exc, DataError):
        return INVALID_FORMAT
    if isinstance(exc, IntegrityError):
        return CHECK_VIOLATION
    return None


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    body = {"success": False, "message": message}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = error_response(exc.status_code, str(exc.detail))
    if getattr(exc, "headers", None):
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for err in exc.errors():
        # loc 例如 ("body", "email")，去掉來源只留欄位路徑
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return error_response(status.HTTP_400_BAD_REQUEST, "Validation failed", errors=errors)


async def db_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    mapped = map_db_error(exc)
    if mapped is None:
        return await unhandled_exception_handler(request, exc)
    status_code, message = mapped
    logger.info("Database constraint error on %s %s: %s", request.method, request.url.path, message)
    return error_response(status_code, message)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    extra = {} if settings.is_production else {"error": str(exc)}
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", **extra)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, db_exception_handler)
    app.add_exception_handler(DataError, db_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
