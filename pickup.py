"""
Small helpers shared by the dashboard and admin endpoints: price-range
lookup, display labels and the pickup date window.
"""
from datetime import date, timedelta
from typing import Any, Mapping, Optional

from config import MAX_PICKUP_DAYS_AHEAD
from models import ItemCondition
from schemas import PriceRange

TIME_SLOT_LABELS = {
    "morning": "Morning (9 AM - 12 PM)",
    "afternoon": "Afternoon (12 PM - 3 PM)",
    "evening": "Evening (3 PM - 6 PM)",
}


def price_range_for(item: Mapping[str, Any], condition) -> PriceRange:
    """
    Pick the pair of bounds stored on a catalog item for the given condition.

    Args:
        item: scrap_items row
        condition: "working" or "not_working" (or the ItemCondition enum)
    """
    if ItemCondition(condition) == ItemCondition.WORKING:
        return PriceRange(min=item["working_price_min"], max=item["working_price_max"])
    return PriceRange(min=item["not_working_price_min"], max=item["not_working_price_max"])


def time_slot_label(slot: str) -> str:
    return TIME_SLOT_LABELS.get(slot, slot)


def status_label(status: str) -> str:
    return status[:1].upper() + status[1:]


def pickup_window(today: Optional[date] = None):
    """First and last allowed pickup dates, both inclusive"""
    today = today or date.today()
    return today, today + timedelta(days=MAX_PICKUP_DAYS_AHEAD)


def is_valid_pickup_date(pickup_date: date, today: Optional[date] = None) -> bool:
    first, last = pickup_window(today)
    return first <= pickup_date <= last
