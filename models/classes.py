from sqlalchemy import Column, Integer, String, ForeignKey
from database.db import Base

class Class(Base):
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, index=True)                      # class ID (PK)
    school_id = Column(Integer, ForeignKey("schools.id"), nullable=False)   # owning school
    name = Column(String(50), nullable=False)                               # e.g. JSS 1, SS 2
    section = Column(String(20))                                            # e.g. A, Gold
