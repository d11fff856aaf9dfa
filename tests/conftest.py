"""
Shared fixtures: a fresh SQLite file database per test, a seeded salon and a
fixed clock.
"""
import os

# Settings are read once, before the application modules are imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["AVAILABILITY_CACHE_ENABLED"] = "false"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import List

import pytest
from sqlalchemy.orm import sessionmaker

from salon_booking.config.database import build_engine
from salon_booking.models import (
    Base,
    Employee,
    EmployeeSchedule,
    Salon,
    Service,
    ServiceAddon,
    User,
    UserRole,
)

# Monday morning, before the salon opens
NOW = datetime(2026, 10, 19, 8, 0)
MONDAY = date(2026, 10, 19)
WEDNESDAY = date(2026, 10, 21)
SATURDAY = date(2026, 10, 24)
SUNDAY = date(2026, 10, 25)


@dataclass
class SeededSalon:
    owner_id: int
    client_id: int
    other_client_id: int
    salon_id: int
    service_id: int
    long_service_id: int
    anna_id: int
    marek_id: int
    wash_addon_id: int
    styling_addon_id: int
    foreign_addon_id: int


def _week(open_time: time, close_time: time) -> List[tuple]:
    """Mon-Fri open_time-close_time, Saturday 10-14, Sunday off"""
    days = [(day, open_time, close_time, False) for day in range(5)]
    days.append((5, time(10, 0), time(14, 0), False))
    days.append((6, None, None, True))
    return days


def seed_salon(db) -> SeededSalon:
    owner = User(email="owner@example.com", name="Owner", role=UserRole.PROVIDER)
    client = User(email="client@example.com", name="Client", role=UserRole.CLIENT)
    other_client = User(email="other@example.com", name="Other", role=UserRole.CLIENT)
    stranger = User(email="stranger@example.com", name="Stranger", role=UserRole.PROVIDER)
    db.add_all([owner, client, other_client, stranger])
    db.flush()

    salon = Salon(name="Test Salon", owner_id=owner.id, timezone="Europe/Warsaw")
    other_salon = Salon(name="Other Salon", owner_id=stranger.id, timezone="Europe/Warsaw")
    db.add_all([salon, other_salon])
    db.flush()

    haircut = Service(salon_id=salon.id, name="Haircut", duration_minutes=30, price=Decimal("80.00"))
    colouring = Service(salon_id=salon.id, name="Colouring", duration_minutes=90, price=Decimal("250.00"))
    db.add_all([haircut, colouring])
    db.flush()

    anna = Employee(salon_id=salon.id, name="Anna", services=[haircut, colouring])
    marek = Employee(salon_id=salon.id, name="Marek", services=[haircut])
    db.add_all([anna, marek])
    db.flush()

    for employee in (anna, marek):
        for day_of_week, open_time, close_time, is_day_off in _week(time(9, 0), time(17, 0)):
            db.add(EmployeeSchedule(
                employee_id=employee.id,
                day_of_week=day_of_week,
                open_time=open_time,
                close_time=close_time,
                is_day_off=is_day_off,
            ))

    wash = ServiceAddon(salon_id=salon.id, service_id=haircut.id, name="Wash", duration_minutes=15,
                        price=Decimal("20.00"))
    styling = ServiceAddon(salon_id=salon.id, service_id=None, name="Styling", duration_minutes=30,
                           price=Decimal("40.00"))
    foreign = ServiceAddon(salon_id=other_salon.id, service_id=None, name="Massage", duration_minutes=20)
    db.add_all([wash, styling, foreign])
    db.commit()

    return SeededSalon(
        owner_id=owner.id,
        client_id=client.id,
        other_client_id=other_client.id,
        salon_id=salon.id,
        service_id=haircut.id,
        long_service_id=colouring.id,
        anna_id=anna.id,
        marek_id=marek.id,
        wash_addon_id=wash.id,
        styling_addon_id=styling.id,
        foreign_addon_id=foreign.id,
    )


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded(db) -> SeededSalon:
    return seed_salon(db)


@pytest.fixture
def now() -> datetime:
    return NOW
