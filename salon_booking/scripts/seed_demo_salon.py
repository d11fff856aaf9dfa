#!/usr/bin/env python3
"""
Script to create a demo salon with employees, working hours, services and add-ons
Usage: python -m salon_booking.scripts.seed_demo_salon
"""
import sys
from datetime import time, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from salon_booking.api.dependencies import create_access_token
from salon_booking.config.database import SessionLocal, create_tables
from salon_booking.models import (
    Employee,
    EmployeeSchedule,
    Salon,
    Service,
    ServiceAddon,
    User,
    UserRole,
)

DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

# (open, close) per weekday, None = day off
WEEKLY_HOURS = [
    (time(9, 0), time(17, 0)),
    (time(9, 0), time(17, 0)),
    (time(9, 0), time(17, 0)),
    (time(11, 0), time(19, 0)),
    (time(9, 0), time(17, 0)),
    (time(10, 0), time(14, 0)),
    None,
]

SERVICES = [
    {"name": "Women's haircut", "duration_minutes": 45, "price": Decimal("120.00")},
    {"name": "Men's haircut", "duration_minutes": 30, "price": Decimal("70.00")},
    {"name": "Full colouring", "duration_minutes": 120, "price": Decimal("350.00")},
]


def seed_demo_salon():
    """Create the demo salon and print tokens for its owner and a client"""
    db: Session = SessionLocal()

    try:
        create_tables()

        owner = User(email="owner@example.com", name="Salon Owner", role=UserRole.PROVIDER)
        client = User(email="client@example.com", name="Demo Client", role=UserRole.CLIENT)
        db.add_all([owner, client])
        db.flush()

        salon = Salon(name="Studio Fryzur Demo", owner_id=owner.id, timezone="Europe/Warsaw")
        db.add(salon)
        db.flush()

        services = [Service(salon_id=salon.id, **data) for data in SERVICES]
        db.add_all(services)
        db.flush()

        employees = [
            Employee(salon_id=salon.id, name="Anna", services=services),
            Employee(salon_id=salon.id, name="Marek", services=services[:2]),
        ]
        db.add_all(employees)
        db.flush()

        for employee in employees:
            for day_of_week, hours in enumerate(WEEKLY_HOURS):
                db.add(EmployeeSchedule(
                    employee_id=employee.id,
                    day_of_week=day_of_week,
                    open_time=hours[0] if hours else None,
                    close_time=hours[1] if hours else None,
                    is_day_off=hours is None,
                ))

        db.add_all([
            ServiceAddon(salon_id=salon.id, service_id=services[0].id, name="Hair wash",
                         duration_minutes=15, price=Decimal("20.00")),
            ServiceAddon(salon_id=salon.id, service_id=None, name="Styling",
                         duration_minutes=30, price=Decimal("50.00")),
        ])

        db.commit()

        print("\n" + "=" * 60)
        print("DEMO SALON CREATED SUCCESSFULLY!")
        print("=" * 60)
        print(f"\nSalon ID: {salon.id} ({salon.name})")
        print("\nServices:")
        for service in services:
            print(f"  {service.id}: {service.name} ({service.duration_minutes} min)")
        print("\nEmployees:")
        for employee in employees:
            print(f"  {employee.id}: {employee.name}")
        print("\nWorking hours:")
        for day_name, hours in zip(DAYS, WEEKLY_HOURS):
            if hours is None:
                print(f"  {day_name}: CLOSED")
            else:
                print(f"  {day_name}: {hours[0].strftime('%H:%M')} - {hours[1].strftime('%H:%M')}")

        week = timedelta(days=7)
        print("\nTokens (valid 7 days):")
        print(f"  owner:  {create_access_token({'sub': str(owner.id)}, week)}")
        print(f"  client: {create_access_token({'sub': str(client.id)}, week)}")
        print()

        return salon.id

    except Exception as e:
        db.rollback()
        print(f"\nError creating demo salon: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    seed_demo_salon()
