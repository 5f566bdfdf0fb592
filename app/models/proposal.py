# app/models/proposal.py
import enum
import uuid
from sqlalchemy import (
    Column, Integer, Text, DECIMAL, ForeignKey, TIMESTAMP, Enum, CHAR, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from app.core.database import Base

class ProposalStatusEnum(str, enum.Enum):
    submitted = "submitted"
    shortlisted = "shortlisted"
    accepted = "accepted"
    rejected = "rejected"
    withdrawn = "withdrawn"

class Proposal(Base):
    __tablename__ = "proposals"
    # 同一位工作者對同一案件只能提案一次
    __table_args__ = (
        UniqueConstraint("project_id", "freelancer_id", name="uq_proposal_project_freelancer"),
    )

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(CHAR(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    freelancer_id = Column(CHAR(36), ForeignKey("freelancer_profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    # 固定價案件使用 bid_amount；時薪案件使用 hourly_rate + estimated_hours
    bid_amount = Column(DECIMAL(12, 2))
    hourly_rate = Column(DECIMAL(10, 2))
    estimated_hours = Column(Integer)
    cover_letter = Column(Text)

    status = Column(
        Enum(ProposalStatusEnum, name="proposal_status_enum", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=ProposalStatusEnum.submitted,
        index=True
    )
    submitted_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    # --- 建立關聯 (Relationships) ---
    project = relationship("Project", back_populates="proposals")
    freelancer = relationship("FreelancerProfile", back_populates="proposals")
