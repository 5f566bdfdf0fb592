# app/models/contract.py
import enum
import uuid
from sqlalchemy import (
    Column, String, TEXT, DECIMAL, TIMESTAMP, ForeignKey, Enum, CHAR, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.project import ProjectTypeEnum

class ContractStatusEnum(str, enum.Enum):
    active = "active"
    completed = "completed"
    terminated = "terminated"

class MilestoneStatusEnum(str, enum.Enum):
    funded = "funded"
    in_review = "in_review"
    released = "released"
    disputed = "disputed"

def _values(enum_cls):
    return [e.value for e in enum_cls]

class Contract(Base):
    __tablename__ = "contracts"
    # (重要) 金額欄位完全由 contract_type 決定：fixed 只有 agreed_amount，hourly 只有 hourly_rate
    __table_args__ = (
        CheckConstraint(
            "(contract_type = 'fixed' AND agreed_amount IS NOT NULL AND hourly_rate IS NULL) OR "
            "(contract_type = 'hourly' AND hourly_rate IS NOT NULL AND agreed_amount IS NULL)",
            name="ck_contract_pricing_matches_type"
        ),
    )

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # --- 關聯 ---
    project_id = Column(CHAR(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(CHAR(36), ForeignKey("client_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    freelancer_id = Column(CHAR(36), ForeignKey("freelancer_profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    # --- 合約內容 ---
    contract_type = Column(
        Enum(ProjectTypeEnum, name="contract_type_enum", values_callable=_values),
        nullable=False
    )
    agreed_amount = Column(DECIMAL(12, 2))
    hourly_rate = Column(DECIMAL(10, 2))
    currency = Column(CHAR(3), nullable=False, default="USD")
    start_at = Column(TIMESTAMP, server_default=func.now())
    end_at = Column(TIMESTAMP, nullable=True)

    # --- 狀態管理 ---
    status = Column(
        Enum(ContractStatusEnum, name="contract_status_enum", values_callable=_values),
        nullable=False,
        default=ContractStatusEnum.active,
        index=True
    )
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    # --- SQLAlchemy Relationships ---
    project = relationship("Project", back_populates="contracts")
    client = relationship("ClientProfile", foreign_keys=[client_id])
    freelancer = relationship("FreelancerProfile", foreign_keys=[freelancer_id])

    milestones = relationship(
        "Milestone",
        back_populates="contract",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="Milestone.due_at"
    )

class Milestone(Base):
    __tablename__ = "milestones"

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    contract_id = Column(CHAR(36), ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    scope = Column(TEXT)
    amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    status = Column(
        Enum(MilestoneStatusEnum, name="milestone_status_enum", values_callable=_values),
        nullable=False,
        default=MilestoneStatusEnum.funded
    )
    due_at = Column(TIMESTAMP, nullable=True)
    released_at = Column(TIMESTAMP, nullable=True)

    contract = relationship("Contract", back_populates="milestones")
