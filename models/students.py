from sqlalchemy import Column, Integer, String, Date, ForeignKey
from sqlalchemy.orm import relationship
from database.db import Base

class Student(Base):
    __tablename__ = "students"  # student master data

    id = Column(Integer, primary_key=True, index=True)                      # student ID (PK)
    school_id = Column(Integer, ForeignKey("schools.id"), nullable=False)   # owning school
    name = Column(String(100), nullable=False)                              # full name
    email = Column(String(200))                                             # login / contact email
    admission_date = Column(Date)

    # ✅ enrolments across sessions (1:N)
    classes = relationship("StudentClass", back_populates="student")
