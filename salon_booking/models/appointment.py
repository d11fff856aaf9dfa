# ===== salon_booking/models/appointment.py =====
from sqlalchemy import Column, String, Integer, Numeric, Date, Time, DateTime, ForeignKey, Table, DDL, event
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from salon_booking.models.base import Base


class AppointmentStatus(str, enum.Enum):
    BOOKED = "booked"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


appointment_addons = Table(
    "appointment_addons",
    Base.metadata,
    Column("appointment_id", Integer, ForeignKey("appointments.id", ondelete="CASCADE"), primary_key=True),
    Column("addon_id", Integer, ForeignKey("service_addons.id", ondelete="CASCADE"), primary_key=True),
)


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # References
    salon_id = Column(Integer, ForeignKey("salons.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)

    # Occupied window [start_time, end_time) on date
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # Service price plus add-on prices at booking time
    price = Column(Numeric(10, 2), nullable=True)

    # Status tracking
    status = Column(String(20), default=AppointmentStatus.BOOKED.value, nullable=False)  # booked, completed, cancelled

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    employee = relationship("Employee")
    service = relationship("Service")
    client = relationship("User", back_populates="appointments")
    salon = relationship("Salon")
    addons = relationship("ServiceAddon", secondary=appointment_addons)

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, employee_id={self.employee_id}, "
            f"date={self.date}, {self.start_time}-{self.end_time}, status={self.status})>"
        )

    @property
    def is_booked(self) -> bool:
        return self.status == AppointmentStatus.BOOKED.value


# Database-level guard for the no-overlap invariant. Mirrored by the migration.
NO_OVERLAP_CONSTRAINT = "appointments_no_overlap"

event.listen(
    Appointment.__table__,
    "after_create",
    DDL(
        "CREATE EXTENSION IF NOT EXISTS btree_gist; "
        f"ALTER TABLE appointments ADD CONSTRAINT {NO_OVERLAP_CONSTRAINT} "
        "EXCLUDE USING gist (employee_id WITH =, "
        "tsrange(date + start_time, date + end_time, '[)') WITH &&) "
        "WHERE (status = 'booked')"
    ).execute_if(dialect="postgresql"),
)
