from sqlalchemy import Column, Integer, Float, String, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base

class ResultConfiguration(Base):
    __tablename__ = "result_configurations"  # one settings bundle per school per session

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(Integer, ForeignKey("schools.id"), nullable=False)
    session_id = Column(Integer, ForeignKey("academic_sessions.id"), nullable=False)
    cumulative_enabled = Column(Boolean, nullable=False, default=True)
    cumulative_method = Column(String(50), nullable=False, default="progressive_average")
    show_cumulative_per_term = Column(Boolean, nullable=False, default=True)
    pass_mark = Column(Float)   # NULL -> settings.DEFAULT_PASS_MARK

    __table_args__ = (
        UniqueConstraint("school_id", "session_id", name="uq_result_config_school_session"),
    )

    # ==========================================================
    # [relationships] children are replaced wholesale on update
    # ==========================================================
    periods = relationship(
        "ResultPeriod", back_populates="configuration",
        cascade="all, delete-orphan", order_by="ResultPeriod.id",
    )
    assessment_components = relationship(
        "AssessmentComponent", back_populates="configuration",
        cascade="all, delete-orphan", order_by="AssessmentComponent.id",
    )
    grading_scale = relationship(
        "GradingScale", back_populates="configuration",
        cascade="all, delete-orphan", order_by="GradingScale.id",
    )


class ResultPeriod(Base):
    __tablename__ = "result_periods"  # grading term, e.g. First Term

    id = Column(Integer, primary_key=True, index=True)
    configuration_id = Column(Integer, ForeignKey("result_configurations.id"), nullable=False)
    name = Column(String(50), nullable=False)
    weight = Column(Float, nullable=False, default=1)   # relative weight in the annual average

    configuration = relationship("ResultConfiguration", back_populates="periods")


class AssessmentComponent(Base):
    __tablename__ = "assessment_components"  # sub-score slot, e.g. CA1 / Exam

    id = Column(Integer, primary_key=True, index=True)
    configuration_id = Column(Integer, ForeignKey("result_configurations.id"), nullable=False)
    name = Column(String(50), nullable=False)
    key = Column(String(30), nullable=False)
    max_score = Column(Float, nullable=False)

    configuration = relationship("ResultConfiguration", back_populates="assessment_components")


class GradingScale(Base):
    __tablename__ = "grading_scales"  # score range -> grade label

    id = Column(Integer, primary_key=True, index=True)
    configuration_id = Column(Integer, ForeignKey("result_configurations.id"), nullable=False)
    min_score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False)
    grade = Column(String(10), nullable=False)
    remark = Column(String(100))

    configuration = relationship("ResultConfiguration", back_populates="grading_scale")
