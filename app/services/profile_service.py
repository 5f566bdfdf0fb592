# app/services/profile_service.py
# 依角色建立 / 更新 Profile (註冊、管理員建立使用者、更新使用者共用)
from typing import Optional
from fastapi import HTTPException, status
from app.models.client_profile import ClientProfile
from app.models.freelancer_profile import FreelancerProfile
from app.models.user import User, UserRoleEnum
from app.schemas.profile_schema import ProfileInput, FREELANCER_PROFILE_FIELDS, CLIENT_PROFILE_FIELDS


class ProfileService:

    @staticmethod
    def attach_profile(user: User, profile_data: Optional[ProfileInput]) -> None:
        """
        依角色替新使用者掛上對應的 Profile (管理員沒有 Profile)。
        未提供 profile 時建立空白 Profile，確保之後可以刊登案件 / 提案。
        """
        data = profile_data.model_dump(exclude_unset=True) if profile_data else {}

        if user.role == UserRoleEnum.freelancer:
            fields = {k: v for k, v in data.items() if k in FREELANCER_PROFILE_FIELDS}
            user.freelancer_profile = FreelancerProfile(**fields)
        elif user.role == UserRoleEnum.client:
            fields = {k: v for k, v in data.items() if k in CLIENT_PROFILE_FIELDS}
            user.client_profile = ClientProfile(**fields)

    @staticmethod
    def apply_profile_update(user: User, profile_data: ProfileInput) -> None:
        """
        部分更新目前角色的 Profile (只處理有傳入的欄位)
        """
        data = profile_data.model_dump(exclude_unset=True)

        if user.role == UserRoleEnum.freelancer:
            profile, allowed = user.freelancer_profile, FREELANCER_PROFILE_FIELDS
        elif user.role == UserRoleEnum.client:
            profile, allowed = user.client_profile, CLIENT_PROFILE_FIELDS
        else:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "Admin accounts have no profile")

        if profile is None:
            # 舊資料可能沒有 Profile，補建一份
            ProfileService.attach_profile(user, profile_data)
            return

        for key, value in data.items():
            if key in allowed:
                setattr(profile, key, value)
