# app/repositories/contract_repo.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload
from sqlalchemy.sql.expression import or_
from typing import List, Optional

from app.models.contract import Contract, ContractStatusEnum


class ContractRepository:
    """
    封裝對 'contracts' 資料表的 CRUD 操作
    """
    def __init__(self, db: AsyncSession):
        self.db = db

    def _get_common_contract_options(self):
        """
        定義 ContractDetailOut Schema 所需的 Eager Loading 策略，避免 N+1 查詢
        (milestones 由 Model 上的 lazy="selectin" 載入)
        """
        return [joinedload(Contract.project)]

    async def add_contract(self, contract: Contract) -> Contract:
        """
        將新的合約物件加入 Session 並 flush (不 commit，由呼叫端的交易決定)
        """
        self.db.add(contract)
        await self.db.flush()
        return contract

    async def get_contract_by_id(self, contract_id: str) -> Optional[Contract]:
        stmt = (
            select(Contract)
            .where(Contract.id == contract_id)
            .options(*self._get_common_contract_options())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_open_contract_for_project(self, project_id: str) -> Optional[Contract]:
        """
        查詢案件中尚未終止的合約 (一個案件最多只能有一份)
        """
        stmt = select(Contract).where(
            Contract.project_id == project_id,
            Contract.status != ContractStatusEnum.terminated
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_contracts(
        self,
        project_id: Optional[str] = None,
        client_id: Optional[str] = None,
        freelancer_id: Optional[str] = None,
        status: Optional[ContractStatusEnum] = None,
        scope_to_participants: bool = False,
        visible_to_client_id: Optional[str] = None,
        visible_to_freelancer_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Contract]:
        """
        條件搜尋合約。

        scope_to_participants=True 時，visible_to_client_id / visible_to_freelancer_id
        以 OR 條件限制可見範圍 (一般使用者只能看到自己參與的合約)，
        其餘篩選條件再以 AND 疊加在可見範圍之上。
        """
        stmt = select(Contract).options(*self._get_common_contract_options())

        if scope_to_participants:
            conditions = []
            if visible_to_client_id is not None:
                conditions.append(Contract.client_id == visible_to_client_id)
            if visible_to_freelancer_id is not None:
                conditions.append(Contract.freelancer_id == visible_to_freelancer_id)
            if not conditions:
                return []
            stmt = stmt.where(or_(*conditions))

        if project_id is not None:
            stmt = stmt.where(Contract.project_id == project_id)
        if client_id is not None:
            stmt = stmt.where(Contract.client_id == client_id)
        if freelancer_id is not None:
            stmt = stmt.where(Contract.freelancer_id == freelancer_id)
        if status is not None:
            stmt = stmt.where(Contract.status == status)

        stmt = stmt.order_by(Contract.start_at.desc(), Contract.id).limit(limit).offset(offset)
        result = await self.db.execute(stmt)
        return result.scalars().unique().all()

    async def update_contract(self, contract: Contract) -> Contract:
        await self.db.commit()
        return await self.get_contract_by_id(contract.id)

    async def delete_contract(self, contract: Contract) -> None:
        await self.db.delete(contract)
        await self.db.commit()
