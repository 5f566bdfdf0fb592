# models/user.py
import enum
import uuid
from sqlalchemy import Column, String, Boolean, Enum, CHAR, TIMESTAMP, func
from sqlalchemy.orm import relationship
from app.core.database import Base

# 對應 SQL 中的 ENUM 型別
class UserRoleEnum(str, enum.Enum):
    client = "client"
    freelancer = "freelancer"
    admin = "admin"

class User(Base):
    __tablename__ = "users"

    # 基本欄位
    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRoleEnum, name="user_role_enum", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False
    )
    first_name = Column(String(100))
    last_name = Column(String(100))
    phone = Column(String(50))
    country = Column(String(100))
    is_verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    # 關聯設定
    freelancer_profile = relationship(
        "FreelancerProfile",
        back_populates="user",
        uselist=False,
        lazy="selectin", # 查詢 User 時一併載入 Profile (非同步環境不能延遲載入)
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    client_profile = relationship(
        "ClientProfile",
        back_populates="user",
        uselist=False,
        lazy="selectin", # 查詢 User 時一併載入 Profile (非同步環境不能延遲載入)
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
