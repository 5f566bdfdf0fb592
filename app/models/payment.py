# app/models/payment.py
# 託管金 (Escrow) 與付款紀錄，皆掛在 Milestone 之下
import uuid
from sqlalchemy import Column, String, DECIMAL, TIMESTAMP, ForeignKey, CHAR, func
from sqlalchemy.orm import relationship
from app.core.database import Base

class Escrow(Base):
    __tablename__ = "escrows"

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    milestone_id = Column(CHAR(36), ForeignKey("milestones.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(DECIMAL(12, 2), nullable=False)
    currency = Column(CHAR(3), nullable=False, default="USD")
    status = Column(String(20), nullable=False, default="funded") # funded / released / refunded
    funded_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    milestone = relationship("Milestone")

class Payment(Base):
    __tablename__ = "payments"

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    milestone_id = Column(CHAR(36), ForeignKey("milestones.id", ondelete="CASCADE"), nullable=False, index=True)
    payer_client_id = Column(CHAR(36), ForeignKey("client_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    payee_freelancer_id = Column(CHAR(36), ForeignKey("freelancer_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(DECIMAL(12, 2), nullable=False)
    currency = Column(CHAR(3), nullable=False, default="USD")
    method = Column(String(20)) # card / bank_transfer / wallet
    status = Column(String(20), nullable=False, default="pending")
    paid_at = Column(TIMESTAMP, nullable=True)

    milestone = relationship("Milestone")
