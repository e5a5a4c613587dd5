from sqlalchemy import Column, Integer, String
from database.db import Base

class School(Base):
    __tablename__ = "schools"  # tenant table, every other row is partitioned by school

    id = Column(Integer, primary_key=True, index=True)        # school ID (PK)
    name = Column(String(200), nullable=False)                # school name
    subdomain = Column(String(100), unique=True)              # tenant subdomain (e.g. greenfield)
