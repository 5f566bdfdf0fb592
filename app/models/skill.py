# app/models/skill.py
import uuid
from sqlalchemy import Column, String, Integer, ForeignKey, CHAR, UniqueConstraint
from sqlalchemy.orm import relationship
from app.core.database import Base

class Skill(Base):
    __tablename__ = "skills"

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), unique=True, nullable=False)
    category = Column(String(100))

    freelancers = relationship("FreelancerSkill", back_populates="skill")
    projects = relationship("ProjectSkill", back_populates="skill")

class ProjectSkill(Base):
    __tablename__ = "project_skills"
    __table_args__ = (UniqueConstraint("project_id", "skill_id", name="uq_project_skill"),)

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(CHAR(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    skill_id = Column(CHAR(36), ForeignKey("skills.id", ondelete="RESTRICT"), nullable=False, index=True)

    project = relationship("Project", back_populates="skills")
    skill = relationship("Skill", back_populates="projects", lazy="selectin")

class FreelancerSkill(Base):
    __tablename__ = "freelancer_skills"
    __table_args__ = (UniqueConstraint("freelancer_id", "skill_id", name="uq_freelancer_skill"),)

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    freelancer_id = Column(CHAR(36), ForeignKey("freelancer_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    skill_id = Column(CHAR(36), ForeignKey("skills.id", ondelete="RESTRICT"), nullable=False, index=True)
    proficiency = Column(Integer, default=3)
    years = Column(Integer)

    freelancer = relationship("FreelancerProfile", back_populates="skills")
    skill = relationship("Skill", back_populates="freelancers", lazy="selectin")
