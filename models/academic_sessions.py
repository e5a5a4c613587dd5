from sqlalchemy import Column, Integer, String, Date, ForeignKey
from database.db import Base

class AcademicSession(Base):
    __tablename__ = "academic_sessions"  # academic year (e.g. 2024/2025)

    id = Column(Integer, primary_key=True, index=True)                      # session ID (PK)
    school_id = Column(Integer, ForeignKey("schools.id"), nullable=False)   # owning school
    name = Column(String(50), nullable=False)                               # display name, "2024/2025"
    start_date = Column(Date)
    end_date = Column(Date)
