# app/services/proposal_service.py
import logging
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import transaction
from app.core.security import is_admin, utc_now
from app.core.state_machine import PROPOSAL, ensure_transition
from app.models.user import User, UserRoleEnum
from app.models.contract import Contract, ContractStatusEnum
from app.models.project import Project, ProjectStatusEnum, ProjectTypeEnum
from app.models.proposal import Proposal, ProposalStatusEnum
from app.repositories.contract_repo import ContractRepository
from app.repositories.proposal_repo import ProposalRepository
from app.repositories.project_repo import ProjectRepository
from app.schemas.proposal_schema import (
    ProposalCreate, ProposalUpdate, ProposalFreelancerEdit, ProposalClientEdit
)

logger = logging.getLogger(__name__)

# 仍在等待雇主決定的提案狀態
PENDING_STATUSES = [ProposalStatusEnum.submitted, ProposalStatusEnum.shortlisted]

BID_FIELDS = ("bid_amount", "hourly_rate", "estimated_hours", "cover_letter")

PROJECT_NOT_OPEN = "Project is not open for accepting proposals"


def _freelancer_profile_id(user: User) -> Optional[str]:
    return user.freelancer_profile.id if user.freelancer_profile else None


def _client_profile_id(user: User) -> Optional[str]:
    return user.client_profile.id if user.client_profile else None


def _missing_price_field(project: Project, proposal) -> Optional[str]:
    """
    固定價案件必須有 bid_amount，時薪案件必須有 hourly_rate；回傳缺少的欄位名稱
    """
    if project.project_type == ProjectTypeEnum.fixed and proposal.bid_amount is None:
        return "bid_amount"
    if project.project_type == ProjectTypeEnum.hourly and proposal.hourly_rate is None:
        return "hourly_rate"
    return None


class ProposalService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.proposal_repo = ProposalRepository(db)
        self.project_repo = ProjectRepository(db)
        self.contract_repo = ContractRepository(db)

    # -----------------------------------------------------------------
    # 查詢
    # -----------------------------------------------------------------
    async def list_proposals(
        self,
        user: User,
        project_id: Optional[str],
        freelancer_id: Optional[str],
        status_filter: Optional[ProposalStatusEnum],
        limit: int,
        offset: int
    ) -> List[Proposal]:
        """
        管理員可看全部；其他人只看得到自己提出的，或自己案件收到的提案
        """
        if is_admin(user):
            return await self.proposal_repo.list_proposals(
                project_id=project_id, freelancer_id=freelancer_id, status=status_filter,
                limit=limit, offset=offset
            )

        own_freelancer_id = _freelancer_profile_id(user)
        own_client_id = _client_profile_id(user)
        if own_freelancer_id is None and own_client_id is None:
            return []

        return await self.proposal_repo.list_proposals(
            project_id=project_id,
            freelancer_id=freelancer_id,
            status=status_filter,
            visible_to_freelancer_id=own_freelancer_id,
            visible_to_client_id=own_client_id,
            limit=limit,
            offset=offset
        )

    async def get_proposal(self, proposal_id: str, user: User) -> Proposal:
        proposal = await self.proposal_repo.get_proposal_detail(proposal_id)
        if not proposal:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Proposal not found")

        is_submitter = proposal.freelancer_id == _freelancer_profile_id(user)
        is_project_owner = proposal.project.client_id == _client_profile_id(user)
        if not (is_submitter or is_project_owner or is_admin(user)):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to view this proposal"
            )
        return proposal

    # -----------------------------------------------------------------
    # 建立 / 修改 / 刪除
    # -----------------------------------------------------------------
    async def create_proposal(self, data: ProposalCreate, user: User) -> Proposal:
        """
        (工作者) 對開放中的案件提交提案，每個案件只能提案一次
        """
        if user.role != UserRoleEnum.freelancer:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. Required role: freelancer"
            )
        freelancer_id = _freelancer_profile_id(user)
        if freelancer_id is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Freelancer profile required to submit proposals"
            )

        # 步驟 1: 驗證
        project = await self.project_repo.get_project_by_id(data.project_id)
        if not project:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
        if project.status != ProjectStatusEnum.open:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Project is not open for proposals"
            )
        missing = _missing_price_field(project, data)
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{missing} is required for {project.project_type.value} projects"
            )
        existing = await self.proposal_repo.check_existing_proposal(project.id, freelancer_id)
        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You have already submitted a proposal for this project"
            )

        # 步驟 2: 儲存
        new_proposal = Proposal(
            project_id=project.id,
            freelancer_id=freelancer_id,
            status=ProposalStatusEnum.submitted,
            **data.model_dump(include=set(BID_FIELDS))
        )
        created = await self.proposal_repo.create_proposal(new_proposal)
        logger.info("Proposal %s submitted to project %s", created.id, project.id)
        return created

    async def update_proposal(self, proposal_id: str, data: ProposalUpdate, user: User) -> Proposal:
        """
        PATCH 依呼叫者身分分派：
        - 提案者本人 -> 修改報價內容 (或撤回)
        - 案件雇主 / 管理員 -> 修改提案狀態
        """
        proposal = await self.proposal_repo.get_proposal_by_id_with_project(proposal_id)
        if not proposal:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Proposal not found")

        fields = data.model_dump(exclude_unset=True, mode="json")
        is_submitter = proposal.freelancer_id == _freelancer_profile_id(user)
        is_project_owner = proposal.project.client_id == _client_profile_id(user)

        if is_submitter:
            if fields.get("status") not in (None, ProposalStatusEnum.withdrawn.value):
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Only the project owner can change proposal status"
                )
            return await self._freelancer_edit(proposal, ProposalFreelancerEdit(**fields))

        if is_project_owner or is_admin(user):
            if any(field in fields for field in BID_FIELDS):
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Only the freelancer can edit bid details"
                )
            if "status" not in fields:
                return proposal
            return await self._client_edit(proposal, ProposalClientEdit(**fields))

        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to modify this proposal"
        )

    async def _freelancer_edit(self, proposal: Proposal, edit: ProposalFreelancerEdit) -> Proposal:
        if proposal.status not in PENDING_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only submitted or shortlisted proposals can be edited"
            )

        changes = edit.model_dump(exclude_unset=True, exclude={"status"})
        for key, value in changes.items():
            setattr(proposal, key, value)

        missing = _missing_price_field(proposal.project, proposal)
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{missing} is required for {proposal.project.project_type.value} projects"
            )

        if edit.status is not None:
            ensure_transition(PROPOSAL, proposal.status, ProposalStatusEnum.withdrawn)
            proposal.status = ProposalStatusEnum.withdrawn

        return await self.proposal_repo.update_proposal(proposal)

    async def _client_edit(self, proposal: Proposal, edit: ProposalClientEdit) -> Proposal:
        target = edit.status
        # 撤回只能由提案者本人操作
        if target == ProposalStatusEnum.withdrawn:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the freelancer can withdraw a proposal"
            )
        if target == ProposalStatusEnum.accepted:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Use POST /proposals/{id}/accept to accept a proposal"
            )
        # 相同狀態視為無作用的更新
        if target == proposal.status:
            return proposal

        ensure_transition(PROPOSAL, proposal.status, target)
        proposal.status = target
        return await self.proposal_repo.update_proposal(proposal)

    async def delete_proposal(self, proposal_id: str, user: User) -> None:
        proposal = await self.proposal_repo.get_proposal_by_id(proposal_id)
        if not proposal:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Proposal not found")
        if proposal.freelancer_id != _freelancer_profile_id(user) and not is_admin(user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only delete your own proposals"
            )
        await self.proposal_repo.delete_proposal(proposal)
        logger.info("Proposal %s deleted by user %s", proposal_id, user.id)

    # -----------------------------------------------------------------
    # 接受 / 拒絕
    # -----------------------------------------------------------------
    async def _get_for_decision(self, proposal_id: str, user: User, action: str) -> Proposal:
        proposal = await self.proposal_repo.get_proposal_by_id_with_project(proposal_id)
        if not proposal:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Proposal not found")
        if proposal.project.client_id != _client_profile_id(user) and not is_admin(user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Only the project owner can {action} proposals"
            )
        return proposal

    async def accept_proposal(self, proposal_id: str, user: User) -> dict:
        """
        接受提案並建立合約 (單一交易)：
        1. 提案 -> accepted
        2. 同案件其他 submitted / shortlisted 提案 -> rejected
        3. 案件 -> awarded
        4. 依案件類型建立合約

        前置檢查在交易外進行；交易內再以資料列鎖與 compare-and-swap 重新確認案件仍為 open。
        """
        proposal = await self._get_for_decision(proposal_id, user, "accept")
        project = proposal.project

        if proposal.status == ProposalStatusEnum.accepted:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This proposal has already been accepted"
            )
        if proposal.status == ProposalStatusEnum.rejected:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot accept a rejected proposal"
            )
        if proposal.status == ProposalStatusEnum.withdrawn:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot accept a withdrawn proposal"
            )
        if project.status != ProjectStatusEnum.open:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=PROJECT_NOT_OPEN)

        missing = _missing_price_field(project, proposal)
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Proposal has no {missing} for a {project.project_type.value} project"
            )
        ensure_transition(PROPOSAL, proposal.status, ProposalStatusEnum.accepted)

        async with transaction(self.db):
            # 鎖住案件資料列，重新確認仍為 open
            locked_project = await self.project_repo.get_project_for_update(project.id)
            if locked_project is None or locked_project.status != ProjectStatusEnum.open:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=PROJECT_NOT_OPEN)

            # 1. 提案 -> accepted
            updated = await self.proposal_repo.set_status_if_in(
                proposal.id, ProposalStatusEnum.accepted, PENDING_STATUSES
            )
            if updated != 1:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Proposal is no longer pending"
                )

            # 2. 其他競爭提案 -> rejected
            rejected_count = await self.proposal_repo.reject_competing_proposals(project.id, proposal.id)

            # 3. 案件 -> awarded (compare-and-swap)
            if await self.project_repo.award_if_open(project.id) != 1:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=PROJECT_NOT_OPEN)

            # 一個案件最多一份未終止的合約
            if await self.contract_repo.get_open_contract_for_project(project.id):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Project already has an active contract"
                )

            # 4. 建立合約：金額欄位完全由案件類型決定
            is_fixed = locked_project.project_type == ProjectTypeEnum.fixed
            contract = Contract(
                project_id=project.id,
                client_id=locked_project.client_id,
                freelancer_id=proposal.freelancer_id,
                contract_type=locked_project.project_type,
                agreed_amount=proposal.bid_amount if is_fixed else None,
                hourly_rate=None if is_fixed else proposal.hourly_rate,
                currency=locked_project.currency,
                status=ContractStatusEnum.active,
                start_at=utc_now(),
            )
            await self.contract_repo.add_contract(contract)

        # 交易已提交，重新讀取批次更新後的資料
        await self.db.refresh(proposal)
        await self.db.refresh(locked_project)
        await self.db.refresh(contract)

        logger.info(
            "Proposal %s accepted by user %s: project %s awarded, contract %s created, %d competing proposals rejected",
            proposal.id, user.id, project.id, contract.id, rejected_count
        )
        return {"proposal": proposal, "contract": contract}

    async def reject_proposal(self, proposal_id: str, user: User) -> Proposal:
        """
        拒絕單一提案；不影響案件與其他提案
        """
        proposal = await self._get_for_decision(proposal_id, user, "reject")

        if proposal.status == ProposalStatusEnum.accepted:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot reject an accepted proposal"
            )
        ensure_transition(PROPOSAL, proposal.status, ProposalStatusEnum.rejected)

        proposal.status = ProposalStatusEnum.rejected
        updated = await self.proposal_repo.update_proposal(proposal)
        logger.info("Proposal %s rejected by user %s", proposal.id, user.id)
        return updated
