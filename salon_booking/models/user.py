# ============================================================================
# FILE: salon_booking/models/user.py
# Client and provider accounts. Tokens are issued by the identity provider,
# this table only maps the token subject to a person.
# ============================================================================
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from salon_booking.models.base import Base


class UserRole(str, enum.Enum):
    """Platform-level user roles."""
    CLIENT = "client"      # Books appointments
    PROVIDER = "provider"  # Owns salons, manages schedules


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)

    role = Column(
        SQLEnum(
            UserRole,
            native_enum=False,
            length=20,
            values_callable=lambda roles: [role.value for role in roles]
        ),
        default=UserRole.CLIENT,
        nullable=False,
        index=True
    )

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    salons = relationship("Salon", back_populates="owner")
    appointments = relationship("Appointment", back_populates="client")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    @property
    def is_provider(self) -> bool:
        return self.role == UserRole.PROVIDER
