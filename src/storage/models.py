"""
Content Store Tables

ORM table definitions for the curriculum content the pipeline reads and
the practice items, assessments and assets it backfills. Provenance
fields are first-class columns; anything else goes in `extra`.
"""

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)


class Module(Base):
    __tablename__ = "modules"

    id = Column(Integer, primary_key=True)
    slug = Column(String, unique=True, nullable=False)
    title = Column(String)
    subject = Column(String, nullable=False)
    grade_band = Column(String, nullable=False)
    strand = Column(String)
    topic = Column(String)
    practice_target = Column(Integer)


class ModuleStandard(Base):
    __tablename__ = "module_standards"

    id = Column(Integer, primary_key=True)
    module_id = Column(Integer, ForeignKey("modules.id"), nullable=False, index=True)
    standard_code = Column(String, nullable=False)


class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True)
    module_id = Column(Integer, ForeignKey("modules.id"), index=True)
    title = Column(String)


class PracticeItem(Base):
    __tablename__ = "practice_items"

    id = Column(Integer, primary_key=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"))
    lesson_id = Column(Integer, ForeignKey("lessons.id"), index=True)
    module_id = Column(Integer, ForeignKey("modules.id"))
    question_type = Column(String, default="multiple_choice")
    prompt = Column(Text, nullable=False)
    solution_explanation = Column(Text)
    difficulty = Column(Integer, default=2)
    tags = Column(JSON, default=list)
    # provenance
    module_slug = Column(String, index=True)
    generated_by = Column(String)
    standards = Column(JSON, default=list)
    extra = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)


class QuestionOption(Base):
    __tablename__ = "question_options"

    id = Column(Integer, primary_key=True)
    question_id = Column(Integer, ForeignKey("practice_items.id"), nullable=False, index=True)
    option_order = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)
    feedback = Column(Text)


class Assessment(Base):
    __tablename__ = "assessments"

    id = Column(Integer, primary_key=True)
    module_id = Column(Integer, ForeignKey("modules.id"), index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"))
    title = Column(String)
    description = Column(Text)
    is_adaptive = Column(Boolean, default=False)
    estimated_duration_minutes = Column(Integer)
    assessment_type = Column(String)
    # provenance
    module_slug = Column(String)
    generated_by = Column(String)
    purpose = Column(String)
    standards = Column(JSON, default=list)
    extra = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)


class AssessmentSection(Base):
    __tablename__ = "assessment_sections"

    id = Column(Integer, primary_key=True)
    assessment_id = Column(Integer, ForeignKey("assessments.id"), nullable=False, index=True)
    section_order = Column(Integer, nullable=False, default=1)
    title = Column(String)
    instructions = Column(Text)


class AssessmentQuestion(Base):
    __tablename__ = "assessment_questions"

    id = Column(Integer, primary_key=True)
    section_id = Column(Integer, ForeignKey("assessment_sections.id"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("practice_items.id"), nullable=False)
    question_order = Column(Integer, nullable=False)
    weight = Column(Float, default=1.0)
    module_slug = Column(String)
    generated_by = Column(String)


class Asset(Base):
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True)
    module_id = Column(Integer, ForeignKey("modules.id"), nullable=False, index=True)
    title = Column(String)
    description = Column(Text)
    url = Column(String)
    kind = Column(String)
    license = Column(String)
    license_url = Column(String)
    attribution_text = Column(String)
    storage_mode = Column(String)
    source_provider = Column(String)
    # provenance
    module_slug = Column(String)
    generated_by = Column(String)
    standards = Column(JSON, default=list)
    extra = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
