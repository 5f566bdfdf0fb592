# app/schemas/project_schema.py
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime
from app.models.project import ProjectTypeEnum, ProjectStatusEnum, ProjectVisibilityEnum
from app.schemas.profile_schema import SkillOut # 複用 Profile 的技能 Schema

# 1. 用於在 ProjectOut 中顯示巢狀的技能
class ProjectSkillOut(BaseModel):
    skill: SkillOut

    class Config:
        from_attributes = True # 啟用 ORM 模式


def _check_budget_range(budget_min: Optional[float], budget_max: Optional[float]) -> None:
    if budget_min is not None and budget_max is not None and budget_min > budget_max:
        raise ValueError("budget_min cannot be greater than budget_max")


# 2. 雇主刊登案件時的 Request Body (Input)
class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    project_type: ProjectTypeEnum
    budget_min: Optional[float] = Field(None, ge=0)
    budget_max: Optional[float] = Field(None, ge=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    visibility: ProjectVisibilityEnum = ProjectVisibilityEnum.public
    due_at: Optional[datetime] = None
    # (重要) 雇主在前端選擇的技能 ID 列表
    skill_ids: List[str] = []

    @model_validator(mode="after")
    def validate_budget(self):
        _check_budget_range(self.budget_min, self.budget_max)
        return self

# 3. 雇主更新案件時的 Request Body (Input)
# (所有欄位皆可選)
class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    budget_min: Optional[float] = Field(None, ge=0)
    budget_max: Optional[float] = Field(None, ge=0)
    visibility: Optional[ProjectVisibilityEnum] = None
    due_at: Optional[datetime] = None
    status: Optional[ProjectStatusEnum] = None
    skill_ids: Optional[List[str]] = None

    @model_validator(mode="after")
    def validate_budget(self):
        _check_budget_range(self.budget_min, self.budget_max)
        return self

# 4. 回傳給前端的案件資料 (Output)
class ProjectOut(BaseModel):
    id: str
    client_id: str
    title: str
    description: Optional[str] = None
    project_type: ProjectTypeEnum
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    currency: str
    status: ProjectStatusEnum
    visibility: ProjectVisibilityEnum
    posted_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # (重要) 巢狀回傳完整的技能資料
    skills: List[ProjectSkillOut] = []

    class Config:
        from_attributes = True # 啟用 ORM 模式

# 5. 列表 / 詳情頁：附帶雇主資訊與提案數
class ProjectWithClientOut(ProjectOut):
    company_name: Optional[str] = None
    client_name: Optional[str] = None
    proposal_count: int = 0

# 6. 精簡版，用於在提案、合約中顯示所屬案件
class ProjectBriefOut(BaseModel):
    id: str
    client_id: str
    title: str
    project_type: ProjectTypeEnum
    status: ProjectStatusEnum
    currency: str

    class Config:
        from_attributes = True
