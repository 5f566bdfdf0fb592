# app/models/refresh_token.py
import uuid
from sqlalchemy import Column, String, Boolean, TIMESTAMP, ForeignKey, CHAR, func
from sqlalchemy.orm import relationship
from app.core.database import Base

class RefreshToken(Base):
    """伺服器端保存的 refresh token，可被撤銷 (登出 / 全裝置登出)"""
    __tablename__ = "refresh_tokens"

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(CHAR(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(512), unique=True, nullable=False)
    expires_at = Column(TIMESTAMP, nullable=False)
    revoked = Column(Boolean, default=False, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    user = relationship("User", back_populates="refresh_tokens")
