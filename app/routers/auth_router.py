# app/routers/auth_router.py
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.services.auth_service import AuthService
from app.schemas.common_schema import ApiResponse
from app.schemas.user_schema import (
    AuthOut, RefreshOut, RefreshRequest, Token, UserCreate, UserLogin, UserWithProfileOut
)


logger = logging.getLogger(__name__) # 取得 logger

router = APIRouter(
    prefix="/auth", # 路由前綴
    tags=["Auth"]    # API 文件分類標籤
)


@router.post("/register", response_model=ApiResponse[AuthOut], status_code=status.HTTP_201_CREATED)
async def register_new_user(
    user_data: UserCreate, # Request Body 會被 Pydantic 驗證
    db: AsyncSession = Depends(get_db)
):
    """
    註冊新使用者 (freelancer / client)，並同時建立對應的 Profile

    - 密碼需至少 8 碼，且包含大寫、小寫英文與數字。
    """
    auth_service = AuthService(db)

    # 服務層中的 HTTPException 會由全域 exception handler 轉成統一格式
    result = await auth_service.register_user(user_data)
    return {"success": True, "message": "User registered successfully", "data": result}


@router.post("/login", response_model=ApiResponse[AuthOut])
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    使用 email / 密碼登入，取得 access token 與 refresh token
    """
    auth_service = AuthService(db)
    result = await auth_service.login(credentials.email, credentials.password)
    return {"success": True, "message": "Login successful", "data": result}


@router.post("/token", response_model=Token)
async def login_for_access_token(
    # (重要) 使用 OAuth2PasswordRequestForm 會強制 API 只接受 form-data
    # 格式為 username=...&password=...
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db)
):
    """
    提供帳號 (username 欄位傳 email) 和密碼以取得 Access Token (給 API 文件的 Authorize 使用)
    """
    auth_service = AuthService(db)

    # form_data.username 欄位就是我們的 email
    user = await auth_service.authenticate_user(
        email=form_data.username,
        password=form_data.password
    )

    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info("User logged in via token form: %s", user.id)
    tokens = await auth_service.issue_tokens(user)
    return {"access_token": tokens["access_token"], "token_type": "bearer"}


@router.post("/refresh", response_model=ApiResponse[RefreshOut])
async def refresh_access_token(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    以 refresh token 換發新的 access token
    """
    auth_service = AuthService(db)
    result = await auth_service.refresh_access_token(body.refresh_token)
    return {"success": True, "data": result}


@router.post("/logout", response_model=ApiResponse)
async def logout(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    撤銷目前的 refresh token。
    不需要登入，讓 access token 過期後仍然可以登出。
    """
    await AuthService(db).logout(body.refresh_token)
    return {"success": True, "message": "Logout successful"}


@router.post("/logout-all", response_model=ApiResponse)
async def logout_all_devices(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    撤銷此使用者所有的 refresh token (所有裝置登出)
    """
    await AuthService(db).logout_all(current_user)
    return {"success": True, "message": "Logged out from all devices"}


@router.get("/me", response_model=ApiResponse[UserWithProfileOut])
async def read_current_user(current_user: User = Depends(get_current_user)):
    """
    取得目前登入的使用者 (含 Profile)
    """
    return {"success": True, "data": current_user}
