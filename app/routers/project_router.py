# app/routers/project_router.py
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

# 匯入核心依賴
from app.core.database import get_db
from app.core.security import get_current_user, get_current_user_optional
from app.models.user import User
from app.models.project import ProjectStatusEnum, ProjectTypeEnum

# 匯入 Service 和 Schemas
from app.services.project_service import ProjectService
from app.schemas.common_schema import ApiResponse, Pagination
from app.schemas.project_schema import ProjectCreate, ProjectOut, ProjectUpdate, ProjectWithClientOut

router = APIRouter(
    prefix="/projects",
    tags=["Projects"],
)


@router.get("", response_model=ApiResponse[List[ProjectWithClientOut]])
async def search_all_projects(
    # 複合式搜尋的 Query Parameters
    status_filter: Optional[ProjectStatusEnum] = Query(None, alias="status"),
    project_type: Optional[ProjectTypeEnum] = Query(None),
    min_budget: Optional[float] = Query(None, ge=0),
    max_budget: Optional[float] = Query(None, ge=0),
    mine: bool = Query(False, description="只列出自己刊登的案件 (需登入)"),
    page: Pagination = Depends(),
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    """
    搜尋案件 (公開 API，不需登入)。
    每筆資料附帶技能、公司名稱、雇主姓名與提案數。
    """
    if mine and current_user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required.")

    service = ProjectService(db)
    projects = await service.list_projects(
        status_filter=status_filter,
        project_type=project_type,
        min_budget=min_budget,
        max_budget=max_budget,
        owner=current_user if mine else None,
        limit=page.limit,
        offset=page.offset
    )
    return {"success": True, "data": projects, "count": len(projects)}


@router.post("", response_model=ApiResponse[ProjectOut], status_code=status.HTTP_201_CREATED)
async def create_new_project(
    project_data: ProjectCreate, # Request Body
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    刊登新案件。

    - (權限) 僅限「client」角色，且需有 Client Profile。
    - (資料) 可傳入所需技能 `skill_ids` 列表。
    """
    service = ProjectService(db)

    # Service 層會自動處理權限 (403) 和 技能驗證 (400)
    new_project = await service.create_project(project_data, current_user)
    return {"success": True, "message": "Project created successfully", "data": new_project}


@router.get("/{project_id}", response_model=ApiResponse[ProjectWithClientOut])
async def get_project_details(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    project = await ProjectService(db).get_project(project_id)
    return {"success": True, "data": project}


@router.patch("/{project_id}", response_model=ApiResponse[ProjectOut])
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    (雇主 / 管理員) 更新案件；狀態變更必須符合案件狀態機
    """
    project = await ProjectService(db).update_project(project_id, data, current_user)
    return {"success": True, "data": project}


@router.delete("/{project_id}", response_model=ApiResponse)
async def delete_project(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await ProjectService(db).delete_project(project_id, current_user)
    return {"success": True, "message": "Project deleted successfully"}

