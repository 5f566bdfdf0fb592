# app/services/contract_service.py
import logging
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.security import is_admin
from app.core.state_machine import CONTRACT, ensure_transition
from app.models.contract import Contract, ContractStatusEnum
from app.models.user import User
from app.repositories.contract_repo import ContractRepository
from app.schemas.contract_schema import ContractUpdate

logger = logging.getLogger(__name__)


class ContractService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.contract_repo = ContractRepository(db)

    def _is_participant(self, contract: Contract, user: User) -> bool:
        client_id = user.client_profile.id if user.client_profile else None
        freelancer_id = user.freelancer_profile.id if user.freelancer_profile else None
        return contract.client_id == client_id or contract.freelancer_id == freelancer_id

    async def list_contracts(
        self,
        user: User,
        project_id: Optional[str],
        client_id: Optional[str],
        freelancer_id: Optional[str],
        status_filter: Optional[ContractStatusEnum],
        limit: int,
        offset: int
    ) -> List[Contract]:
        """
        依角色限定範圍：雇主看自己簽的、工作者看自己接的、管理員看全部
        """
        filters = dict(
            project_id=project_id,
            client_id=client_id,
            freelancer_id=freelancer_id,
            status=status_filter,
            limit=limit,
            offset=offset
        )
        if is_admin(user):
            return await self.contract_repo.list_contracts(**filters)

        return await self.contract_repo.list_contracts(
            scope_to_participants=True,
            visible_to_client_id=user.client_profile.id if user.client_profile else None,
            visible_to_freelancer_id=user.freelancer_profile.id if user.freelancer_profile else None,
            **filters
        )

    async def get_contract(self, contract_id: str, user: User) -> Contract:
        """
        取得合約詳情 (含里程碑)，只有參與者或管理員可以檢視
        """
        contract = await self.contract_repo.get_contract_by_id(contract_id)
        if not contract:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contract not found")
        if not self._is_participant(contract, user) and not is_admin(user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to view this contract"
            )
        return contract

    async def update_contract(self, contract_id: str, data: ContractUpdate, user: User) -> Contract:
        contract = await self.contract_repo.get_contract_by_id(contract_id)
        if not contract:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contract not found")
        if not self._is_participant(contract, user) and not is_admin(user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to update this contract"
            )

        update_data = data.model_dump(exclude_unset=True)
        new_status = update_data.pop("status", None)

        # 狀態轉移必須符合狀態機 (相同狀態視為無作用)
        if new_status is not None and new_status != contract.status:
            ensure_transition(CONTRACT, contract.status, new_status)
            logger.info(
                "Contract %s status %s -> %s by user %s",
                contract.id, contract.status.value, new_status.value, user.id
            )
            contract.status = new_status

        if "end_at" in update_data:
            contract.end_at = update_data["end_at"]

        return await self.contract_repo.update_contract(contract)

    async def delete_contract(self, contract_id: str, user: User) -> None:
        contract = await self.contract_repo.get_contract_by_id(contract_id)
        if not contract:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contract not found")
        await self.contract_repo.delete_contract(contract)
        logger.info("Contract %s deleted by admin %s", contract_id, user.id)
