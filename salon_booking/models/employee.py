# salon_booking/models/employee.py
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Table
from sqlalchemy.orm import relationship
from salon_booking.models.base import Base


# Which employees perform which services
employee_services = Table(
    "employee_services",
    Base.metadata,
    Column("employee_id", Integer, ForeignKey("employees.id", ondelete="CASCADE"), primary_key=True),
    Column("service_id", Integer, ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
)


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, autoincrement=True)
    salon_id = Column(Integer, ForeignKey("salons.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # Incremented under lock by every booking write for this employee
    booking_version = Column(Integer, default=0, nullable=False)

    salon = relationship("Salon", back_populates="employees")
    services = relationship("Service", secondary=employee_services, back_populates="employees")
    schedule = relationship(
        "EmployeeSchedule",
        back_populates="employee",
        cascade="all, delete-orphan",
        order_by="EmployeeSchedule.day_of_week"
    )
    vacations = relationship("EmployeeVacation", back_populates="employee", cascade="all, delete-orphan")
    time_off = relationship("EmployeeTimeOff", back_populates="employee", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Employee(id={self.id}, name={self.name}, salon_id={self.salon_id})>"

    def performs(self, service_id: int) -> bool:
        return any(service.id == service_id for service in self.services)
