from api.config import Base
from sqlalchemy import Column, Integer, String, JSON, DateTime, ForeignKey, Boolean, Float, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime


class Course(Base):
    __tablename__ = "courses"
    id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    modules = relationship("Module", backref="course", cascade="all, delete-orphan", order_by="Module.order_index")


class Module(Base):
    __tablename__ = "modules"
    id = Column(String, primary_key=True, index=True)  # uuid or slug
    course_id = Column(String, ForeignKey("courses.id"), index=True, nullable=False)
    title = Column(String, nullable=False, default="")
    order_index = Column(Integer, nullable=False)
    module_type = Column(String, nullable=False, default="lecture")  # lecture|quiz|initial_assessment|final_assessment
    pass_threshold = Column(Integer, nullable=False, default=70)
    proctored = Column(Boolean, nullable=True)  # None: default for the module type
    origin = Column(String, nullable=True)  # relational|document
    quiz = Column(JSON, nullable=True)  # list of {id, question, options, correctAnswer}
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ModuleProgress(Base):
    __tablename__ = "module_progress"
    __table_args__ = (UniqueConstraint("student_id", "course_id", "module_id", name="uq_progress_student_module"),)

    id = Column(String, primary_key=True, index=True)  # uuid
    student_id = Column(String, index=True, nullable=False)
    course_id = Column(String, index=True, nullable=False)
    module_id = Column(String, index=True, nullable=False)
    completed = Column(Boolean, default=False, nullable=False)
    quiz_score = Column(Integer, nullable=True)
    completed_topics = Column(JSON, nullable=False, default=list)
    locked_until = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"
    id = Column(String, primary_key=True, index=True)  # attempt id == proctoring session id
    student_id = Column(String, index=True, nullable=False)
    course_id = Column(String, index=True, nullable=False)
    module_id = Column(String, index=True, nullable=False)
    status = Column(String, nullable=False, default="started")  # started|submitted
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    submitted_at = Column(DateTime, nullable=True)
    answers = Column(JSON, nullable=True)
    score = Column(Integer, nullable=True)
    passed = Column(Boolean, default=False, nullable=False)
    details = Column(JSON, nullable=True)


class ProctoringLog(Base):
    __tablename__ = "proctoring_logs"
    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String, unique=True, index=True, nullable=False)
    student_id = Column(String, index=True, nullable=False)
    course_id = Column(String, index=True, nullable=False)
    attempt_id = Column(String, index=True, nullable=True)
    event_type = Column(String, nullable=False)
    details = Column(JSON, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=True)  # client time
    received_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ModuleExperience(Base):
    """Accumulated engagement per student and module."""
    __tablename__ = "module_experience"
    __table_args__ = (UniqueConstraint("student_id", "course_id", "module_id", name="uq_experience_student_module"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(String, index=True, nullable=False)
    course_id = Column(String, index=True, nullable=False)
    module_id = Column(String, index=True, nullable=False)
    time_spent = Column(Float, default=0.0, nullable=False)  # seconds
    scroll_depth = Column(Integer, default=0, nullable=False)  # max percent
    beats = Column(Integer, default=0, nullable=False)
    last_accessed = Column(DateTime, default=datetime.utcnow, nullable=False)


class ExperienceBeat(Base):
    """
    One accepted heartbeat. `beat_key` is the client beat id, or the 30s
    bucket for clients that send none; redeliveries hit the unique key.
    """
    __tablename__ = "experience_beats"
    __table_args__ = (UniqueConstraint("student_id", "module_id", "beat_key", name="uq_beat_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(String, index=True, nullable=False)
    module_id = Column(String, index=True, nullable=False)
    bucket = Column(Integer, nullable=False)
    beat_key = Column(String, nullable=False)
    received_at = Column(DateTime, default=datetime.utcnow, nullable=False)
