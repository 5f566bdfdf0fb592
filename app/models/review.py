# app/models/review.py
import uuid
from sqlalchemy import Column, Integer, TEXT, TIMESTAMP, ForeignKey, CHAR, CheckConstraint, func
from app.core.database import Base

class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_review_rating_range"),
    )

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    contract_id = Column(CHAR(36), ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False, index=True)
    reviewer_user_id = Column(CHAR(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reviewee_user_id = Column(CHAR(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(TEXT)
    reviewed_at = Column(TIMESTAMP, server_default=func.now())
