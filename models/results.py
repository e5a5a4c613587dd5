from datetime import datetime, timezone

from sqlalchemy import Column, Integer, Float, String, Boolean, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Result(Base):
    __tablename__ = "results"  # one student, one subject, one period

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    period_id = Column(Integer, ForeignKey("result_periods.id"), nullable=False, index=True)
    session_id = Column(Integer, ForeignKey("academic_sessions.id"), nullable=False, index=True)

    total = Column(Float, nullable=False, default=0)        # sum of component scores (or marks %)
    marks = Column(Float)                                   # raw marks from the marks-entry screen
    total_marks = Column(Float)                             # maximum obtainable for `marks`
    grade = Column(String(10))
    remark = Column(String(100))
    cumulative_average = Column(Float)                      # subject average across the session's periods
    teacher_comment = Column(Text)
    admin_comment = Column(Text)

    is_approved = Column(Boolean, nullable=False, default=False)
    published = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("student_id", "subject_id", "period_id", "session_id", name="uq_result_student_subject_period"),
    )

    # ==========================================================
    # [relationships]
    # ==========================================================
    student = relationship("Student")
    subject = relationship("Subject")
    period = relationship("ResultPeriod")
    component_scores = relationship(
        "ComponentScore", back_populates="result",
        cascade="all, delete-orphan", order_by="ComponentScore.id",
    )


class ComponentScore(Base):
    __tablename__ = "component_scores"  # one component score inside a result

    id = Column(Integer, primary_key=True, index=True)
    result_id = Column(Integer, ForeignKey("results.id"), nullable=False)
    component_id = Column(Integer, ForeignKey("assessment_components.id"), nullable=False)
    score = Column(Float, nullable=False)

    result = relationship("Result", back_populates="component_scores")
    component = relationship("AssessmentComponent")
