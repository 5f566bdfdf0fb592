# models/project.py
import enum
import uuid
from sqlalchemy import Column, String, TEXT, DECIMAL, TIMESTAMP, ForeignKey, Enum, CHAR, func
from sqlalchemy.orm import relationship
from app.core.database import Base

class ProjectTypeEnum(str, enum.Enum):
    fixed = "fixed"
    hourly = "hourly"

class ProjectStatusEnum(str, enum.Enum):
    open = "open"
    awarded = "awarded"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"

class ProjectVisibilityEnum(str, enum.Enum):
    public = "public"
    invite_only = "invite_only"
    private = "private"

def _values(enum_cls):
    return [e.value for e in enum_cls]

class Project(Base):
    # 告訴 SQLAlchemy，這個類別對應到資料庫中名為 projects 的表格 (table)
    __tablename__ = "projects"

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # 案件屬於一個雇主 Profile
    client_id = Column(CHAR(36), ForeignKey("client_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(TEXT)
    project_type = Column(
        Enum(ProjectTypeEnum, name="project_type_enum", values_callable=_values),
        nullable=False
    )
    budget_min = Column(DECIMAL(12, 2))
    budget_max = Column(DECIMAL(12, 2))
    currency = Column(CHAR(3), nullable=False, default="USD")
    status = Column(
        Enum(ProjectStatusEnum, name="project_status_enum", values_callable=_values),
        nullable=False,
        default=ProjectStatusEnum.open,
        index=True
    )
    visibility = Column(
        Enum(ProjectVisibilityEnum, name="project_visibility_enum", values_callable=_values),
        nullable=False,
        default=ProjectVisibilityEnum.public
    )
    posted_at = Column(TIMESTAMP, server_default=func.now())
    due_at = Column(TIMESTAMP, nullable=True)
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    # 呼應 client_profile.py 中的 'projects'
    client = relationship("ClientProfile", back_populates="projects")

    # 與 'ProjectSkill' (關聯表) 的 '多' 關聯
    skills = relationship(
        "ProjectSkill",
        back_populates="project",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    # 刪除案件時，一併刪除關聯提案
    proposals = relationship(
        "Proposal",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    # 此案件下的合約 (同一時間最多一份未終止的合約)
    contracts = relationship(
        "Contract",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
