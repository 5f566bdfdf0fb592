# app/routers/proposal_router.py

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.models.proposal import ProposalStatusEnum
from app.services.proposal_service import ProposalService
from app.services.project_service import ProjectService
from app.schemas.common_schema import ApiResponse, Pagination
from app.schemas.proposal_schema import (
    ProposalAcceptOut,
    ProposalCreate,
    ProposalDetailOut,
    ProposalOut,
    ProposalUpdate,
)

# 建立 API Router
router = APIRouter(
    prefix="/proposals",
    tags=["Proposals"],
    dependencies=[Depends(get_current_user)] # 重要：此 router 下所有 API 都需要登入
)

# 案件底下的提案列表掛在 /projects 前綴下，語意更清晰
project_proposal_router = APIRouter(
    prefix="/projects",
    tags=["Proposals"], # 歸類到同一個 Tag
    dependencies=[Depends(get_current_user)]
)


@project_proposal_router.get("/{project_id}/proposals", response_model=ApiResponse[List[ProposalDetailOut]])
async def get_project_proposals(
    project_id: str,
    page: Pagination = Depends(),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    (雇主 / 管理員) 檢視自己刊登的案件所收到的所有提案
    """
    proposals = await ProjectService(db).list_project_proposals(
        project_id, current_user, page.limit, page.offset
    )
    return {"success": True, "data": proposals, "count": len(proposals)}


@router.get("", response_model=ApiResponse[List[ProposalDetailOut]])
async def list_proposals(
    project_id: Optional[str] = Query(None),
    freelancer_id: Optional[str] = Query(None),
    status_filter: Optional[ProposalStatusEnum] = Query(None, alias="status"),
    page: Pagination = Depends(),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    查詢提案列表。非管理員只會看到自己提出的，或自己案件收到的提案。
    """
    proposals = await ProposalService(db).list_proposals(
        current_user, project_id, freelancer_id, status_filter, page.limit, page.offset
    )
    return {"success": True, "data": proposals, "count": len(proposals)}


@router.post("", response_model=ApiResponse[ProposalOut], status_code=status.HTTP_201_CREATED)
async def submit_proposal(
    proposal_data: ProposalCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    (工作者) 對開放中的案件提交提案。

    - 固定價案件需填 bid_amount；時薪案件需填 hourly_rate。
    - 同一案件只能提案一次 (重複提案回傳 409)。
    """
    proposal = await ProposalService(db).create_proposal(proposal_data, current_user)
    return {"success": True, "message": "Proposal submitted successfully", "data": proposal}


@router.get("/{proposal_id}", response_model=ApiResponse[ProposalDetailOut])
async def get_proposal_details(
    proposal_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    proposal = await ProposalService(db).get_proposal(proposal_id, current_user)
    return {"success": True, "data": proposal}


@router.patch("/{proposal_id}", response_model=ApiResponse[ProposalOut])
async def update_proposal(
    proposal_id: str,
    update_data: ProposalUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    更新提案：
    - 提案者本人可修改報價內容，或將 status 設為 withdrawn (撤回)。
    - 案件雇主 / 管理員可修改 status (接受提案請使用 /accept)。
    """
    proposal = await ProposalService(db).update_proposal(proposal_id, update_data, current_user)
    return {"success": True, "data": proposal}


@router.delete("/{proposal_id}", response_model=ApiResponse)
async def delete_proposal(
    proposal_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await ProposalService(db).delete_proposal(proposal_id, current_user)
    return {"success": True, "message": "Proposal deleted successfully"}


@router.post("/{proposal_id}/accept", response_model=ApiResponse[ProposalAcceptOut])
async def accept_proposal(
    proposal_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    (雇主 / 管理員) 接受提案：
    其他待定提案一併拒絕、案件改為 awarded，並建立合約。
    """
    result = await ProposalService(db).accept_proposal(proposal_id, current_user)
    return {"success": True, "message": "Proposal accepted and contract created", "data": result}


@router.post("/{proposal_id}/reject", response_model=ApiResponse[ProposalOut])
async def reject_proposal(
    proposal_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    (雇主 / 管理員) 拒絕單一提案
    """
    proposal = await ProposalService(db).reject_proposal(proposal_id, current_user)
    return {"success": True, "message": "Proposal rejected", "data": proposal}
