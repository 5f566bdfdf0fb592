# app/repositories/proposal_repo.py

from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload, selectinload
from typing import List, Optional

from app.models.project import Project
from app.models.proposal import Proposal, ProposalStatusEnum

class ProposalRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_proposal_by_id(self, proposal_id: str) -> Optional[Proposal]:
        """
        透過 ID 獲取單一提案
        """
        stmt = select(Proposal).where(Proposal.id == proposal_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_proposal_by_id_with_project(self, proposal_id: str) -> Optional[Proposal]:
        """
        透過 ID 獲取單一提案，並載入關聯的 Project (用於權限檢查)
        """
        stmt = select(Proposal).where(Proposal.id == proposal_id).options(
            # 使用 joinedload 載入 project，因為我們需要 project.client_id
            joinedload(Proposal.project)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_proposal_detail(self, proposal_id: str) -> Optional[Proposal]:
        """
        透過 ID 獲取提案，並 Eager Load 其 Project 和 Freelancer (Profile)
        """
        stmt = select(Proposal).where(Proposal.id == proposal_id).options(
            joinedload(Proposal.project),
            joinedload(Proposal.freelancer)
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def check_existing_proposal(self, project_id: str, freelancer_id: str) -> Optional[Proposal]:
        """
        檢查特定工作者是否已對特定案件提案 (唯一性檢查)
        """
        stmt = select(Proposal).where(
            Proposal.project_id == project_id,
            Proposal.freelancer_id == freelancer_id
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_proposals(
        self,
        project_id: Optional[str] = None,
        freelancer_id: Optional[str] = None,
        status: Optional[ProposalStatusEnum] = None,
        visible_to_freelancer_id: Optional[str] = None,
        visible_to_client_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Proposal]:
        """
        條件搜尋提案。

        visible_to_* 用於非管理員：只看得到自己提出的，或自己案件收到的提案
        """
        stmt = select(Proposal).options(
            # 效能優化：一併載入所屬案件與提案者 Profile，回傳 Schema 時不會 N+1 查詢
            selectinload(Proposal.project),
            selectinload(Proposal.freelancer)
        )

        if project_id is not None:
            stmt = stmt.where(Proposal.project_id == project_id)
        if freelancer_id is not None:
            stmt = stmt.where(Proposal.freelancer_id == freelancer_id)
        if status is not None:
            stmt = stmt.where(Proposal.status == status)

        visibility = []
        if visible_to_freelancer_id is not None:
            visibility.append(Proposal.freelancer_id == visible_to_freelancer_id)
        if visible_to_client_id is not None:
            visibility.append(
                Proposal.project_id.in_(
                    select(Project.id).where(Project.client_id == visible_to_client_id)
                )
            )
        if visible_to_freelancer_id is not None or visible_to_client_id is not None:
            stmt = stmt.where(or_(*visibility))

        stmt = stmt.order_by(Proposal.submitted_at.desc(), Proposal.id).limit(limit).offset(offset)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def create_proposal(self, proposal: Proposal) -> Proposal:
        """
        新增提案
        """
        self.db.add(proposal)
        await self.db.commit()
        await self.db.refresh(proposal)
        return proposal

    async def update_proposal(self, proposal: Proposal) -> Proposal:
        """
        更新提案 (報價內容或 status)
        """
        await self.db.commit()
        await self.db.refresh(proposal)
        return proposal

    async def delete_proposal(self, proposal: Proposal) -> None:
        """
        刪除提案
        """
        await self.db.delete(proposal)
        await self.db.commit()

    # --- 以下供「接受提案」交易使用：只送出 SQL，不 commit ---

    async def set_status_if_in(
        self, proposal_id: str, new_status: ProposalStatusEnum, expected: List[ProposalStatusEnum]
    ) -> int:
        """
        只有目前狀態在 expected 之中才更新，回傳受影響的列數
        """
        stmt = (
            update(Proposal)
            .where(Proposal.id == proposal_id, Proposal.status.in_(expected))
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount

    async def reject_competing_proposals(self, project_id: str, accepted_id: str) -> int:
        """
        同案件中其他 submitted / shortlisted 的提案一律改為 rejected
        (已 rejected / withdrawn 的不動)
        """
        stmt = (
            update(Proposal)
            .where(
                Proposal.project_id == project_id,
                Proposal.id != accepted_id,
                Proposal.status.in_([ProposalStatusEnum.submitted, ProposalStatusEnum.shortlisted])
            )
            .values(status=ProposalStatusEnum.rejected)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount
