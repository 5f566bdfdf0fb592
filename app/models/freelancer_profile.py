# app/models/freelancer_profile.py
import uuid
from sqlalchemy import Column, String, TEXT, Integer, DECIMAL, ForeignKey, CHAR
from sqlalchemy.orm import relationship
from app.core.database import Base

class FreelancerProfile(Base):
    __tablename__ = "freelancer_profiles"

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(CHAR(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    headline = Column(String(255))
    bio = Column(TEXT)
    hourly_rate = Column(DECIMAL(10, 2))
    experience_years = Column(Integer)
    rating_avg = Column(DECIMAL(3, 2), default=0)
    rating_count = Column(Integer, default=0)

    # 1-to-1 反向關聯到 User
    user = relationship("User", back_populates="freelancer_profile")

    # 與 FreelancerSkill 的 '多' 關聯
    skills = relationship(
        "FreelancerSkill",
        back_populates="freelancer",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    proposals = relationship(
        "Proposal",
        back_populates="freelancer",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
