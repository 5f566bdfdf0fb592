# app/repositories/project_repo.py

import logging
from typing import List, Optional, Sequence, Tuple
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

# 匯入 Models
from app.models.client_profile import ClientProfile
from app.models.project import Project, ProjectStatusEnum, ProjectTypeEnum
from app.models.proposal import Proposal
from app.models.skill import Skill, ProjectSkill

logger = logging.getLogger(__name__)


def _proposal_count_subquery():
    # 每個案件的提案數 (關聯子查詢)
    return (
        select(func.count(Proposal.id))
        .where(Proposal.project_id == Project.id)
        .correlate(Project)
        .scalar_subquery()
    )


class ProjectRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    # 獲取單一案件 (包含技能)
    async def get_project_by_id(self, project_id: str) -> Project | None:
        """
        透過 ID 獲取單一案件

        (select(Project) 會觸發 Model 上 skills 的 lazy="selectin")
        """
        stmt = select(Project).where(Project.id == project_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_project_with_client(self, project_id: str) -> Optional[Tuple[Project, int]]:
        """
        透過 ID 獲取單一案件，並載入雇主 (ClientProfile -> User) 與提案數
        """
        stmt = (
            select(Project, _proposal_count_subquery().label("proposal_count"))
            .where(Project.id == project_id)
            .options(selectinload(Project.client).selectinload(ClientProfile.user))
        )
        result = await self.db.execute(stmt)
        return result.first()

    async def get_project_for_update(self, project_id: str) -> Project | None:
        """
        在交易中以 SELECT ... FOR UPDATE 鎖住案件資料列，並以資料庫最新值覆蓋 Session 中的物件
        """
        stmt = (
            select(Project)
            .where(Project.id == project_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    # 條件搜尋案件
    async def list_projects(
        self,
        status: Optional[ProjectStatusEnum] = None,
        project_type: Optional[ProjectTypeEnum] = None,
        min_budget: Optional[float] = None,
        max_budget: Optional[float] = None,
        client_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Sequence[Tuple[Project, int]]:
        """
        回傳 (Project, proposal_count) 列表，依刊登時間由新到舊
        """
        stmt = select(Project, _proposal_count_subquery().label("proposal_count")).options(
            # 列表需要顯示公司名稱與雇主姓名
            selectinload(Project.client).selectinload(ClientProfile.user)
        )

        if status is not None:
            stmt = stmt.where(Project.status == status)
        if project_type is not None:
            stmt = stmt.where(Project.project_type == project_type)
        if min_budget is not None:
            stmt = stmt.where(Project.budget_min >= min_budget)
        if max_budget is not None:
            stmt = stmt.where(Project.budget_max <= max_budget)
        if client_id is not None:
            stmt = stmt.where(Project.client_id == client_id)

        stmt = stmt.order_by(Project.posted_at.desc(), Project.id).limit(limit).offset(offset)
        result = await self.db.execute(stmt)
        return result.all()

    async def get_skills_by_ids(self, skill_ids: List[str]) -> List[Skill]:
        if not skill_ids:
            return []
        stmt = select(Skill).where(Skill.id.in_(skill_ids))
        result = await self.db.execute(stmt)
        return result.scalars().all()

    # 建立新案件
    async def create_project(self, project: Project, skill_ids: List[str]) -> Project:
        """
        建立新案件 (Project) 並同時寫入 案件-技能 (ProjectSkill) 關聯表
        """
        project.skills = [ProjectSkill(skill_id=skill_id) for skill_id in skill_ids]
        self.db.add(project)
        await self.db.commit()

        # 重新查詢，取得已預先載入 skills 的完整物件
        return await self._reload(project)

    async def update_project(self, project: Project, skill_ids: Optional[List[str]] = None) -> Project:
        """
        更新案件；若有傳入 skill_ids 則整批取代技能關聯
        """
        if skill_ids is not None:
            # 先刪除舊關聯再新增 (unit of work 預設會先 INSERT 後 DELETE，會撞到唯一鍵)
            project.skills.clear()
            await self.db.flush()
            project.skills.extend(ProjectSkill(skill_id=skill_id) for skill_id in skill_ids)
        await self.db.commit()
        return await self._reload(project)

    async def delete_project(self, project: Project) -> None:
        await self.db.delete(project)
        await self.db.commit()

    async def award_if_open(self, project_id: str) -> int:
        """
        Compare-and-swap：只有狀態仍為 open 時才改為 awarded，回傳受影響的列數
        (不 commit，由呼叫端的交易決定)
        """
        stmt = (
            update(Project)
            .where(Project.id == project_id, Project.status == ProjectStatusEnum.open)
            .values(status=ProjectStatusEnum.awarded)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount

    async def _reload(self, project: Project) -> Project:
        stmt = (
            select(Project)
            .where(Project.id == project.id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()
