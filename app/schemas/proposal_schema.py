# app/schemas/proposal_schema.py
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Literal, Optional

from app.models.proposal import ProposalStatusEnum
from app.schemas.profile_schema import FreelancerProfileOut
from app.schemas.project_schema import ProjectBriefOut
from app.schemas.contract_schema import ContractOut

# --- 基礎模型 (報價欄位) ---
class ProposalBidFields(BaseModel):
    # 固定價案件使用 bid_amount；時薪案件使用 hourly_rate (+ estimated_hours)
    bid_amount: Optional[float] = Field(None, gt=0)
    hourly_rate: Optional[float] = Field(None, gt=0)
    estimated_hours: Optional[int] = Field(None, gt=0)
    cover_letter: Optional[str] = None

# --- 建立 (Create) ---
class ProposalCreate(ProposalBidFields):
    # freelancer_id 將從 Token 對應的 Profile 取得
    project_id: str

# --- 更新 (PATCH) ---
class ProposalUpdate(ProposalBidFields):
    """
    PATCH /proposals/{id} 的 Body。
    依呼叫者身分分派到 ProposalFreelancerEdit 或 ProposalClientEdit。
    """
    status: Optional[ProposalStatusEnum] = None

class ProposalFreelancerEdit(ProposalBidFields):
    """提案者本人：只能修改報價內容，或撤回提案"""
    model_config = ConfigDict(extra="forbid")

    status: Optional[Literal["withdrawn"]] = None

class ProposalClientEdit(BaseModel):
    """案件雇主 / 管理員：只能修改提案狀態"""
    model_config = ConfigDict(extra="forbid")

    status: ProposalStatusEnum

# --- 讀取 (Read / Out) ---
class ProposalOut(BaseModel):
    model_config = ConfigDict(from_attributes=True) # orm_mode = True

    id: str
    project_id: str
    freelancer_id: str
    bid_amount: Optional[float] = None
    hourly_rate: Optional[float] = None
    estimated_hours: Optional[int] = None
    cover_letter: Optional[str] = None
    status: ProposalStatusEnum
    submitted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

# --- 包含關聯資料的完整輸出 ---
class ProposalDetailOut(ProposalOut):
    # 嵌套顯示所屬案件與提案者的 Profile 資訊
    project: Optional[ProjectBriefOut] = None
    freelancer: Optional[FreelancerProfileOut] = None

# --- 接受提案的結果 ---
class ProposalAcceptOut(BaseModel):
    proposal: ProposalOut
    contract: ContractOut
