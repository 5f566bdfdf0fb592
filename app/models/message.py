# app/models/message.py
import uuid
from sqlalchemy import Column, String, Text, ForeignKey, TIMESTAMP, CHAR, func
from sqlalchemy.orm import relationship
from app.core.database import Base

class MessageThread(Base):
    __tablename__ = "message_threads"

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # 對話串的上下文：案件 或 合約 (scope 標示是哪一種)
    project_id = Column(CHAR(36), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    contract_id = Column(CHAR(36), ForeignKey("contracts.id", ondelete="SET NULL"), nullable=True, index=True)
    scope = Column(String(20), nullable=False, default="project")
    created_at = Column(TIMESTAMP, server_default=func.now())

    messages = relationship(
        "Message",
        back_populates="thread",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

class Message(Base):
    __tablename__ = "messages"

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    thread_id = Column(CHAR(36), ForeignKey("message_threads.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_user_id = Column(CHAR(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    body = Column(Text)
    type = Column(String(20), default="text")
    sent_at = Column(TIMESTAMP, server_default=func.now())

    thread = relationship("MessageThread", back_populates="messages")
