from sqlalchemy import Column, Date, ForeignKey, Integer, Time, UniqueConstraint
from sqlalchemy.orm import relationship
from models.Base import Base

class AssignmentDB(Base):
    __tablename__ = "reservation_tables"
    __table_args__ = (
        UniqueConstraint("reservation_id", "table_id", name="uq_reservation_table"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True)
    table_id = Column(Integer, ForeignKey("tables.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    reservation = relationship("ReservationDB", back_populates="assignments")
    table = relationship("TableDB", back_populates="assignments")
