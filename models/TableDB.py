from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship
from models.Base import Base

class TableDB(Base):
    __tablename__ = "tables"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    number = Column(String, nullable=False)
    capacity = Column(Integer, nullable=False, default=4)
    zone = Column(String, nullable=False, default="inside")
    active = Column(Boolean, nullable=False, default=True)

    assignments = relationship("AssignmentDB", back_populates="table")
