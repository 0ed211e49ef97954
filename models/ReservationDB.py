from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Integer, String, Text, Time
from sqlalchemy.orm import relationship
from models.Base import Base

class ReservationDB(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=True)
    party_size = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default="new", index=True)
    customer_name = Column(String)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assignments = relationship(
        "AssignmentDB",
        back_populates="reservation",
        cascade="all, delete-orphan",
    )
