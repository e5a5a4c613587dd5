from sqlalchemy import Column, Integer, String, ForeignKey
from database.db import Base

class Subject(Base):
    __tablename__ = "subjects"  # subjects offered by a school

    id = Column(Integer, primary_key=True, index=True)                      # subject ID (PK)
    school_id = Column(Integer, ForeignKey("schools.id"), nullable=False)   # owning school
    name = Column(String(100), nullable=False)                              # e.g. Mathematics
    code = Column(String(20))                                               # e.g. MTH
