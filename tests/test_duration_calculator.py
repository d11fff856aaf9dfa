"""
Tests for total booking duration and price.
"""
from decimal import Decimal

import pytest

from salon_booking.core.exceptions import ValidationError
from salon_booking.models import Service
from salon_booking.services.availability.duration_calculator import (
    DurationCalculator,
    calculate_total_duration,
    calculate_total_price,
)


class TestCalculateTotalDuration:

    def test_no_addons_is_base_duration(self):
        assert calculate_total_duration(45) == 45

    def test_addons_are_summed(self):
        assert calculate_total_duration(30, [15, 30]) == 75


class TestCalculateTotalPrice:

    def test_no_addons_is_service_price(self):
        assert calculate_total_price(Decimal("80.00")) == Decimal("80.00")

    def test_addon_prices_are_added(self):
        assert calculate_total_price(Decimal("80.00"), [Decimal("20.00"), Decimal("40.00")]) == Decimal("140.00")

    def test_unpriced_addons_count_as_zero(self):
        assert calculate_total_price(Decimal("80.00"), [None, Decimal("20.00")]) == Decimal("100.00")

    def test_nothing_priced(self):
        assert calculate_total_price(None, [None]) is None

    def test_unpriced_service_with_priced_addon(self):
        assert calculate_total_price(None, [Decimal("15.50")]) == Decimal("15.50")


class TestDurationCalculator:

    def _service(self, db, seeded):
        return db.get(Service, seeded.service_id)

    def test_resolve_with_addons(self, db, seeded):
        service = self._service(db, seeded)
        assert DurationCalculator.resolve(db, service, [seeded.wash_addon_id, seeded.styling_addon_id]) == 75

    def test_duplicate_addon_ids_count_once(self, db, seeded):
        service = self._service(db, seeded)
        assert DurationCalculator.resolve(db, service, [seeded.wash_addon_id, seeded.wash_addon_id]) == 45

    def test_unknown_addon_rejected(self, db, seeded):
        with pytest.raises(ValidationError):
            DurationCalculator.resolve(db, self._service(db, seeded), [9999])

    def test_addon_of_another_service_rejected(self, db, seeded):
        colouring = db.get(Service, seeded.long_service_id)
        with pytest.raises(ValidationError):
            DurationCalculator.resolve(db, colouring, [seeded.wash_addon_id])

    def test_addon_of_another_salon_rejected(self, db, seeded):
        with pytest.raises(ValidationError):
            DurationCalculator.resolve(db, self._service(db, seeded), [seeded.foreign_addon_id])

    def test_total_duration_override(self, db, seeded):
        service = self._service(db, seeded)
        assert DurationCalculator.resolve(db, service, [], total_duration=60) == 60

    def test_override_shorter_than_service_rejected(self, db, seeded):
        with pytest.raises(ValidationError):
            DurationCalculator.resolve(db, self._service(db, seeded), [], total_duration=20)
