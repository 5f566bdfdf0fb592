# app/models/client_profile.py
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DECIMAL, ForeignKey, CHAR
from sqlalchemy.orm import relationship
from app.core.database import Base

class ClientProfile(Base):
    __tablename__ = "client_profiles"

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(CHAR(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    company_name = Column(String(255))
    company_size = Column(String(50))
    website = Column(String(500))
    rating_avg = Column(DECIMAL(3, 2), default=0)
    rating_count = Column(Integer, default=0)
    is_business_verified = Column(Boolean, default=False)

    # 1-to-1 反向關聯到 User
    user = relationship("User", back_populates="client_profile")

    # 雇主刊登的案件
    projects = relationship(
        "Project",
        back_populates="client",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
