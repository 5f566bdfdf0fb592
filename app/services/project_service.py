# app/services/project_service.py
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status
from typing import List, Optional

# 匯入 Models
from app.models.user import User, UserRoleEnum
from app.models.project import Project, ProjectStatusEnum, ProjectTypeEnum
from app.models.proposal import Proposal

# 匯入 Schemas
from app.schemas.project_schema import ProjectCreate, ProjectUpdate, ProjectWithClientOut

# 匯入 Repositories
from app.repositories.project_repo import ProjectRepository
from app.repositories.proposal_repo import ProposalRepository

from app.core.security import is_admin
from app.core.state_machine import PROJECT, ensure_transition

logger = logging.getLogger(__name__)


def _client_name(project: Project) -> Optional[str]:
    client = project.client
    if client is None or client.user is None:
        return None
    name = " ".join(part for part in (client.user.first_name, client.user.last_name) if part)
    return name or None


def to_project_with_client(project: Project, proposal_count: int) -> ProjectWithClientOut:
    """組合列表 / 詳情頁需要的雇主資訊與提案數"""
    out = ProjectWithClientOut.model_validate(project)
    return out.model_copy(update={
        "company_name": project.client.company_name if project.client else None,
        "client_name": _client_name(project),
        "proposal_count": int(proposal_count or 0),
    })


class ProjectService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.project_repo = ProjectRepository(db)
        self.proposal_repo = ProposalRepository(db) # 用於處理提案相關邏輯

    async def list_projects(
        self,
        status_filter: Optional[ProjectStatusEnum],
        project_type: Optional[ProjectTypeEnum],
        min_budget: Optional[float],
        max_budget: Optional[float],
        limit: int,
        offset: int,
        owner: Optional[User] = None
    ) -> List[ProjectWithClientOut]:
        client_id = None
        if owner is not None:
            # 沒有 Client Profile 的使用者不會有自己的案件
            if owner.client_profile is None:
                return []
            client_id = owner.client_profile.id

        rows = await self.project_repo.list_projects(
            status=status_filter,
            project_type=project_type,
            min_budget=min_budget,
            max_budget=max_budget,
            client_id=client_id,
            limit=limit,
            offset=offset
        )
        return [to_project_with_client(project, count) for project, count in rows]

    async def get_project(self, project_id: str) -> ProjectWithClientOut:
        row = await self.project_repo.get_project_with_client(project_id)
        if row is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
        project, count = row
        return to_project_with_client(project, count)

    async def _validate_skill_ids(self, skill_ids: List[str]) -> List[str]:
        # 去除重複，並確認每個技能都存在
        unique_ids = list(dict.fromkeys(skill_ids))
        if unique_ids:
            skills = await self.project_repo.get_skills_by_ids(unique_ids)
            if len(skills) != len(unique_ids):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="One or more skill_ids are invalid"
                )
        return unique_ids

    async def create_project(self, data: ProjectCreate, user: User) -> Project:
        """
        (雇主) 刊登新案件，必須先有 Client Profile
        """
        if user.role != UserRoleEnum.client:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. Required role: client"
            )
        if user.client_profile is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Client profile required to create projects"
            )

        skill_ids = await self._validate_skill_ids(data.skill_ids)
        project = Project(
            **data.model_dump(exclude={"skill_ids"}),
            client_id=user.client_profile.id,
            status=ProjectStatusEnum.open
        )
        project.currency = project.currency.upper()

        created = await self.project_repo.create_project(project, skill_ids)
        logger.info("Project %s created by client %s", created.id, user.client_profile.id)
        return created

    # 輔助函式：檢查權限
    async def get_owned_project(self, project_id: str, user: User) -> Project:
        """
        獲取案件，並檢查是否為擁有者 (或管理員)
        """
        project = await self.project_repo.get_project_by_id(project_id)
        if not project:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

        owner_profile_id = user.client_profile.id if user.client_profile else None
        if project.client_id != owner_profile_id and not is_admin(user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only modify your own projects"
            )
        return project

    async def update_project(self, project_id: str, data: ProjectUpdate, user: User) -> Project:
        """
        業務邏輯：更新案件內容；狀態變更須符合狀態機
        """
        # 1. 獲取並檢查權限
        project = await self.get_owned_project(project_id, user)

        # 2. 更新欄位 (只處理有傳入的欄位)
        update_data = data.model_dump(exclude_unset=True)
        skill_ids = update_data.pop("skill_ids", None)
        new_status = update_data.pop("status", None)
        if skill_ids is not None:
            skill_ids = await self._validate_skill_ids(skill_ids)

        budget_min = update_data.get("budget_min", project.budget_min)
        budget_max = update_data.get("budget_max", project.budget_max)
        if budget_min is not None and budget_max is not None and float(budget_min) > float(budget_max):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="budget_min cannot be greater than budget_max"
            )

        if new_status is not None and new_status != project.status:
            # awarded 只能透過「接受提案」產生
            if new_status == ProjectStatusEnum.awarded:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Projects are awarded by accepting a proposal"
                )
            ensure_transition(PROJECT, project.status, new_status)
            project.status = new_status

        for key, value in update_data.items():
            setattr(project, key, value)

        # 3. (可選) 技能一併整批取代
        return await self.project_repo.update_project(project, skill_ids)

    async def delete_project(self, project_id: str, user: User) -> None:
        project = await self.get_owned_project(project_id, user)
        await self.project_repo.delete_project(project)
        logger.info("Project %s deleted by user %s", project_id, user.id)

    async def list_project_proposals(
        self, project_id: str, user: User, limit: int, offset: int
    ) -> List[Proposal]:
        """
        (雇主 / 管理員) 檢視特定案件收到的所有提案
        """
        project = await self.project_repo.get_project_by_id(project_id)
        if not project:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

        owner_profile_id = user.client_profile.id if user.client_profile else None
        if project.client_id != owner_profile_id and not is_admin(user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only view proposals for your own projects"
            )
        return await self.proposal_repo.list_proposals(project_id=project_id, limit=limit, offset=offset)
