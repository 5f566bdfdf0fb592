# app/schemas/profile_schema.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

# --- 技能 (Skill) ---
class SkillOut(BaseModel):
    id: str
    name: str
    category: Optional[str] = None

    class Config:
        from_attributes = True

class FreelancerSkillOut(BaseModel):
    skill: SkillOut
    proficiency: Optional[int] = None
    years: Optional[int] = None

    class Config:
        from_attributes = True

# --- 自由工作者 (Freelancer) ---
class FreelancerProfileOut(BaseModel):
    id: str
    user_id: str
    headline: Optional[str] = None
    bio: Optional[str] = None
    hourly_rate: Optional[float] = None
    experience_years: Optional[int] = None
    rating_avg: Optional[float] = None
    rating_count: Optional[int] = None
    skills: List[FreelancerSkillOut] = [] # (重要) 巢狀 Pydantic

    class Config:
        from_attributes = True

# --- 雇主 (Client) ---
class ClientProfileOut(BaseModel):
    id: str
    user_id: str
    company_name: Optional[str] = None
    company_size: Optional[str] = None
    website: Optional[str] = None
    rating_avg: Optional[float] = None
    rating_count: Optional[int] = None
    is_business_verified: Optional[bool] = None

    class Config:
        from_attributes = True

# --- 註冊 / 更新時附帶的 Profile ---
class ProfileInput(BaseModel):
    """
    註冊、建立或更新使用者時的 profile 欄位。
    依角色只取用對應的欄位，其餘忽略。
    """
    model_config = ConfigDict(extra="ignore")

    # 自由工作者
    headline: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = None
    hourly_rate: Optional[float] = Field(None, ge=0)
    experience_years: Optional[int] = Field(None, ge=0)
    # 雇主
    company_name: Optional[str] = Field(None, max_length=255)
    company_size: Optional[str] = Field(None, max_length=50)
    website: Optional[str] = Field(None, max_length=500)

FREELANCER_PROFILE_FIELDS = ("headline", "bio", "hourly_rate", "experience_years")
CLIENT_PROFILE_FIELDS = ("company_name", "company_size", "website")
