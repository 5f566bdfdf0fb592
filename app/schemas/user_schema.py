# app/schemas/user_schema.py
from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator
import re
from datetime import datetime
from app.models.user import UserRoleEnum
from app.schemas.profile_schema import FreelancerProfileOut, ClientProfileOut, ProfileInput
from typing import Literal, Optional


def _check_password_strength(v: str) -> str:
    """
    密碼至少 8 碼，且需同時包含大寫、小寫英文與數字
    """
    if len(v) < 8:
        raise ValueError('Password must be at least 8 characters')
    if not re.search(r'[A-Z]', v) or not re.search(r'[a-z]', v) or not re.search(r'[0-9]', v):
        raise ValueError('Password must contain uppercase, lowercase, and number')
    return v


# 登入請求的格式
class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

# Token 回應的格式 (/auth/token 表單登入)
class Token(BaseModel):
    access_token: str
    token_type: str

# Token 內的資料
class TokenData(BaseModel):
    user_id: str
    email: Optional[str] = None
    role: str

# /auth/refresh 與 /auth/logout 的請求 Body
class RefreshRequest(BaseModel):
    # 前端 SPA 送出的是 camelCase 的 refreshToken，兩種寫法都接受
    refresh_token: Optional[str] = Field(
        None, validation_alias=AliasChoices("refresh_token", "refreshToken")
    )

# /auth/refresh 的回應
class RefreshOut(BaseModel):
    access_token: str
    # 只有開啟 REFRESH_TOKEN_ROTATION 時才會發新的 refresh token
    refresh_token: Optional[str] = None
    token_type: str = "bearer"


# 1. 註冊請求 Body
class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    # 公開註冊只能選擇自由工作者或雇主
    role: Literal["freelancer", "client"]
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    country: Optional[str] = Field(None, max_length=100)
    profile: Optional[ProfileInput] = None

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password_strength(v)

# 2. 管理員建立使用者 (可建立 admin)
class AdminUserCreate(UserCreate):
    role: UserRoleEnum

# 3. 更新使用者 (本人或管理員)
class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    country: Optional[str] = Field(None, max_length=100)
    profile: Optional[ProfileInput] = None
    # 以下欄位僅限管理員修改
    is_active: Optional[bool] = None
    is_verified: Optional[bool] = None

# 4. 查詢使用者的安全回應 (不含密碼)
class UserOut(BaseModel):
    id: str # 我們在資料庫中使用 CHAR(36)，但在 Pydantic 中視為 str
    email: EmailStr
    role: UserRoleEnum
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    country: Optional[str] = None
    is_verified: bool
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True # 舊版 Pydantic 叫 orm_mode = True

# 5. 使用者及其 Profile
class UserWithProfileOut(UserOut):
    # (重要) 欄位名稱必須對應到 User Model 上的 relationship
    freelancer_profile: Optional[FreelancerProfileOut] = None
    client_profile: Optional[ClientProfileOut] = None

# 6. 註冊 / 登入的回應
class AuthOut(BaseModel):
    user: UserWithProfileOut
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
