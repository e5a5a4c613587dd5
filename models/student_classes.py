from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base

ACTIVE = "ACTIVE"

class StudentClass(Base):
    __tablename__ = "student_classes"  # which class a student sits in for a session

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False)
    session_id = Column(Integer, ForeignKey("academic_sessions.id"), nullable=False)
    status = Column(String(20), nullable=False, default=ACTIVE)   # only ACTIVE rows are ranked together
    roll_number = Column(String(20))

    __table_args__ = (
        UniqueConstraint("student_id", "class_id", "session_id", name="uq_student_class_session"),
    )

    # ==========================================================
    # [relationships]
    # ==========================================================
    student = relationship("Student", back_populates="classes")
    klass = relationship("Class")
