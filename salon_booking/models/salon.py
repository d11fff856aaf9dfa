# salon_booking/models/salon.py
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from salon_booking.models.base import Base


class Salon(Base):
    __tablename__ = "salons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    timezone = Column(String(50), default="Europe/Warsaw")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    owner = relationship("User", back_populates="salons")
    employees = relationship("Employee", back_populates="salon")
    services = relationship("Service", back_populates="salon")
    holidays = relationship(
        "SalonHoliday",
        back_populates="salon",
        cascade="all, delete-orphan",
        order_by="SalonHoliday.date"
    )

    def __repr__(self):
        return f"<Salon(id={self.id}, name={self.name})>"


class SalonHoliday(Base):
    """Whole-day closure of a salon, blocks every employee"""
    __tablename__ = "salon_holidays"
    __table_args__ = (
        UniqueConstraint("salon_id", "date", name="uq_salon_holiday_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    salon_id = Column(Integer, ForeignKey("salons.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    reason = Column(String(255), nullable=True)

    salon = relationship("Salon", back_populates="holidays")

    def to_dict(self):
        return {
            "id": self.id,
            "salon_id": self.salon_id,
            "date": self.date.isoformat(),
            "reason": self.reason,
        }
