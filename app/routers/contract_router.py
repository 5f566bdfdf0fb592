# app/routers/contract_router.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.core.security import get_current_user, require_roles
from app.models.user import User, UserRoleEnum
from app.models.contract import ContractStatusEnum
from app.services.contract_service import ContractService
from app.schemas.common_schema import ApiResponse, Pagination
from app.schemas.contract_schema import ContractDetailOut, ContractOut, ContractUpdate

router = APIRouter(
    prefix="/contracts",
    tags=["Contracts"],
    dependencies=[Depends(get_current_user)] # 所有合約 API 都需要登入
)


@router.get("", response_model=ApiResponse[List[ContractOut]])
async def list_my_contracts(
    project_id: Optional[str] = Query(None),
    client_id: Optional[str] = Query(None, description="雇主 Profile ID"),
    freelancer_id: Optional[str] = Query(None, description="工作者 Profile ID"),
    status_filter: Optional[ContractStatusEnum] = Query(None, alias="status"),
    page: Pagination = Depends(),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    列出目前使用者參與的合約 (管理員可看全部)
    """
    contracts = await ContractService(db).list_contracts(
        current_user, project_id, client_id, freelancer_id, status_filter, page.limit, page.offset
    )
    return {"success": True, "data": contracts, "count": len(contracts)}


@router.get("/{contract_id}", response_model=ApiResponse[ContractDetailOut])
async def get_contract_details(
    contract_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    合約詳情 (含依到期日排序的里程碑)
    """
    contract = await ContractService(db).get_contract(contract_id, current_user)
    return {"success": True, "data": contract}


@router.patch("/{contract_id}", response_model=ApiResponse[ContractDetailOut])
async def update_contract(
    contract_id: str,
    data: ContractUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    (參與者 / 管理員) 更新合約狀態或結束時間
    """
    contract = await ContractService(db).update_contract(contract_id, data, current_user)
    return {"success": True, "data": contract}


@router.delete("/{contract_id}", response_model=ApiResponse)
async def delete_contract(
    contract_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRoleEnum.admin))
):
    await ContractService(db).delete_contract(contract_id, current_user)
    return {"success": True, "message": "Contract deleted successfully"}
