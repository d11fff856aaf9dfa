"""Total duration and price of a booking: service plus selected add-ons"""
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence
from sqlalchemy.orm import Session
import logging

from salon_booking.core.exceptions import ValidationError
from salon_booking.models.service import Service, ServiceAddon

logger = logging.getLogger(__name__)


def calculate_total_duration(service_minutes: int, addon_minutes: Iterable[int] = ()) -> int:
    """Base duration plus every add-on duration. No add-ons means the base duration."""
    return service_minutes + sum(addon_minutes)


def calculate_total_price(
        service_price: Optional[Decimal],
        addon_prices: Iterable[Optional[Decimal]] = ()
) -> Optional[Decimal]:
    """
    Service price plus add-on prices. Unpriced add-ons count as zero;
    None when neither the service nor any add-on has a price.
    """
    prices = [price for price in (service_price, *addon_prices) if price is not None]
    if not prices:
        return None
    return sum(prices, Decimal("0.00"))


class DurationCalculator:
    """Resolves add-on ids against the database before summing"""

    @staticmethod
    def load_addons(db: Session, service: Service, addon_ids: Sequence[int]) -> List[ServiceAddon]:
        """Load the selected add-ons, rejecting unknown ids and add-ons of other services"""
        unique_ids = list(dict.fromkeys(addon_ids))
        if not unique_ids:
            return []

        addons = db.query(ServiceAddon).filter(ServiceAddon.id.in_(unique_ids)).all()
        by_id = {addon.id: addon for addon in addons}

        missing = [addon_id for addon_id in unique_ids if addon_id not in by_id]
        if missing:
            raise ValidationError(f"Unknown add-on ids: {missing}")

        foreign = [addon.id for addon in addons if not addon.applies_to(service)]
        if foreign:
            raise ValidationError(
                f"Add-ons {sorted(foreign)} cannot be booked with service {service.id}"
            )

        return [by_id[addon_id] for addon_id in unique_ids]

    @staticmethod
    def resolve(
            db: Session,
            service: Service,
            addon_ids: Sequence[int] = (),
            total_duration: Optional[int] = None
    ) -> int:
        """
        Total minutes a slot must cover.

        An explicit total_duration from the caller wins over the computed sum,
        but can never be shorter than the service itself.
        """
        addons = DurationCalculator.load_addons(db, service, addon_ids)
        total = calculate_total_duration(
            service.duration_minutes,
            (addon.duration_minutes for addon in addons)
        )

        if total_duration is not None:
            if total_duration < service.duration_minutes:
                raise ValidationError(
                    f"total_duration {total_duration} is shorter than the service "
                    f"duration {service.duration_minutes}"
                )
            if total_duration != total:
                logger.info(
                    f"Client duration override for service {service.id}: {total} -> {total_duration} min"
                )
            total = total_duration

        return total
