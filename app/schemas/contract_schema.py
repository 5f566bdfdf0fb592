# app/schemas/contract_schema.py

from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from app.models.contract import ContractStatusEnum, MilestoneStatusEnum
from app.models.project import ProjectTypeEnum
from app.schemas.project_schema import ProjectBriefOut

# --- 1. 里程碑 (Output) ---
class MilestoneOut(BaseModel):
    id: str
    contract_id: str
    title: str
    scope: Optional[str] = None
    amount: float
    status: MilestoneStatusEnum
    due_at: Optional[datetime] = None
    released_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# --- 2. 更新合約 (Input) ---
# 參與者或管理員可修改狀態 (經過狀態機檢查) 與結束時間
class ContractUpdate(BaseModel):
    status: Optional[ContractStatusEnum] = None
    end_at: Optional[datetime] = None

# --- 3. 合約 (Output) ---
class ContractOut(BaseModel):
    id: str
    project_id: str
    client_id: str
    freelancer_id: str
    contract_type: ProjectTypeEnum
    # 固定價合約只有 agreed_amount；時薪合約只有 hourly_rate
    agreed_amount: Optional[float] = None
    hourly_rate: Optional[float] = None
    currency: str
    status: ContractStatusEnum
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# --- 4. 合約詳情 (含里程碑) ---
class ContractDetailOut(ContractOut):
    project: Optional[ProjectBriefOut] = None
    milestones: List[MilestoneOut] = []
