# app/core/security.py
# 負責密碼雜湊與 JWT 權杖的產生與驗證
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from passlib.context import CryptContext
from jose import ExpiredSignatureError, JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.schemas.user_schema import TokenData
from app.repositories.user_repo import UserRepository
from app.models.user import User, UserRoleEnum

# 1. 密碼雜湊設定 (Bcrypt)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# 2. (重要) 定義 Token 從哪裡來 (Authorization Header)
# auto_error=False：缺少 Token 時由我們自己回傳 401 訊息，公開 API 也能共用
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def utc_now() -> datetime:
    """資料庫一律存放不含時區的 UTC 時間"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """驗證明文密碼是否與雜湊值相符"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """產生密碼的雜湊值"""
    return pwd_context.hash(password)


# 3. JWT 權杖產生與驗證
def create_access_token(user: User) -> str:
    """
    產生短效 access token，內含 user id、email 與角色
    """
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "sub": str(user.id), # 'sub' 是 JWT 的標準欄位，存 user id
        "user_id": str(user.id),
        "email": user.email,
        "role": user.role.value, # 確保存入的是字串
        "type": ACCESS_TOKEN_TYPE,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(user_id: str) -> Tuple[str, datetime]:
    """
    產生長效 refresh token (使用獨立秘鑰)。
    回傳 (token, 到期時間)，到期時間會一併寫入 refresh_tokens 表。
    """
    expire = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    to_encode = {
        "sub": str(user_id),
        "user_id": str(user_id),
        "type": REFRESH_TOKEN_TYPE,
        # 同一秒內簽發的兩個 token 也必須不同 (token 欄位是 unique)
        "jti": str(uuid.uuid4()),
        "exp": expire,
    }
    token = jwt.encode(to_encode, settings.JWT_REFRESH_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return token, expire.replace(tzinfo=None)


def verify_access_token(token: str) -> TokenData:
    """
    驗證 access token，回傳 TokenData；失敗時拋出 401
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired. Please login again.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except JWTError:
        raise _invalid_token()

    user_id = payload.get("user_id")
    role = payload.get("role")
    if user_id is None or role is None or payload.get("type") != ACCESS_TOKEN_TYPE:
        raise _invalid_token()

    return TokenData(user_id=user_id, email=payload.get("email"), role=role)


def decode_refresh_token(token: str) -> Optional[str]:
    """
    驗證 refresh token 的簽章與型別，回傳 user_id；無效則回傳 None。
    (是否已撤銷需再查資料庫)
    """
    try:
        payload = jwt.decode(token, settings.JWT_REFRESH_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != REFRESH_TOKEN_TYPE:
        return None
    return payload.get("user_id")


def _invalid_token() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token. Please login again.",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _load_active_user(db: AsyncSession, token_data: TokenData) -> User:
    user_repo = UserRepository(db)
    user = await user_repo.get_user_by_id(user_id=token_data.user_id)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User no longer exists.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is deactivated")
    return user


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    FastAPI 依賴項：驗證 Token 並回傳 User Model (含 Profile)
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided. Please login.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token_data = verify_access_token(token)
    return await _load_active_user(db, token_data)


async def get_current_user_optional(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """
    公開 API 使用：有合法 Token 就回傳 User，否則回傳 None (不會拋錯)
    """
    if not token:
        return None
    try:
        token_data = verify_access_token(token)
        return await _load_active_user(db, token_data)
    except HTTPException:
        return None


def is_admin(user: User) -> bool:
    return user.role == UserRoleEnum.admin


def require_roles(*roles: UserRoleEnum):
    """
    角色檢查的依賴項工廠，例如 Depends(require_roles(UserRoleEnum.admin))
    """
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            allowed = " or ".join(r.value for r in roles)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {allowed}",
            )
        return current_user

    return role_checker
