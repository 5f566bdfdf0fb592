# app/routers/user_router.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.core.security import get_current_user, require_roles
from app.models.user import User, UserRoleEnum
from app.services.user_service import UserService
from app.schemas.common_schema import ApiResponse, Pagination
from app.schemas.user_schema import AdminUserCreate, UserOut, UserUpdate, UserWithProfileOut

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    dependencies=[Depends(get_current_user)] # 此 router 下所有 API 都需要登入
)


@router.get("", response_model=ApiResponse[List[UserOut]])
async def list_users(
    role: Optional[UserRoleEnum] = Query(None, description="依角色篩選"),
    page: Pagination = Depends(),
    db: AsyncSession = Depends(get_db)
):
    users = await UserService(db).list_users(role, page.limit, page.offset)
    return {"success": True, "data": users, "count": len(users)}


@router.get("/{user_id}", response_model=ApiResponse[UserWithProfileOut])
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    """
    取得單一使用者 (含 Profile)
    """
    user = await UserService(db).get_user(user_id)
    return {"success": True, "data": user}


@router.post("", response_model=ApiResponse[UserWithProfileOut], status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: AdminUserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRoleEnum.admin))
):
    """
    (管理員) 建立使用者
    """
    user = await UserService(db).create_user(user_data)
    return {"success": True, "data": user}


@router.patch("/{user_id}", response_model=ApiResponse[UserWithProfileOut])
async def update_user(
    user_id: str,
    update_data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    更新使用者資料 (本人或管理員)
    """
    user = await UserService(db).update_user(user_id, update_data, current_user)
    return {"success": True, "data": user}


@router.delete("/{user_id}", response_model=ApiResponse)
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    刪除使用者 (本人或管理員)，Profile 等資料一併刪除
    """
    await UserService(db).delete_user(user_id, current_user)
    return {"success": True, "message": "User deleted successfully"}
