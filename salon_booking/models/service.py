# salon_booking/models/service.py
"""
Service Model - what a client can book, plus optional add-ons that extend it.
Duration is the source of truth for slot length.
"""
from sqlalchemy import Column, String, Numeric, Integer, ForeignKey, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from salon_booking.models.base import Base
from salon_booking.models.employee import employee_services


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    salon_id = Column(
        Integer,
        ForeignKey("salons.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(200), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=True)  # Stored as decimal for precision

    is_active = Column(Boolean, default=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    salon = relationship("Salon", back_populates="services")
    employees = relationship("Employee", secondary=employee_services, back_populates="services")
    addons = relationship("ServiceAddon", back_populates="service")

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name}, duration={self.duration_minutes})>"

    @property
    def employee_ids(self):
        return [employee.id for employee in self.employees]


class ServiceAddon(Base):
    """Optional extra booked together with a service (e.g. hair wash)"""
    __tablename__ = "service_addons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    salon_id = Column(Integer, ForeignKey("salons.id", ondelete="CASCADE"), nullable=False, index=True)
    # NULL = usable with every service of the salon
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=True, index=True)

    name = Column(String(200), nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(10, 2), nullable=True)

    service = relationship("Service", back_populates="addons")

    def __repr__(self):
        return f"<ServiceAddon(id={self.id}, name={self.name}, duration={self.duration_minutes})>"

    def applies_to(self, service) -> bool:
        if self.salon_id != service.salon_id:
            return False
        return self.service_id is None or self.service_id == service.id
