"""
Watering urgency classification.

A plant is due on ``last_watered + interval_days``. Relative to today:

- due date already passed        -> Overdue
- due today or within two days   -> DueSoon
- due later than that            -> OnTrack
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable

from plantpal.errors import ScheduleOutOfRange
from plantpal.scheduling.date_math import (
    DateLike,
    add_days,
    days_between,
    today as utc_today,
)


# Fixed policy, not user-configurable
DUE_SOON_WINDOW_DAYS = 2

# Longest accepted watering interval (about ten years)
MAX_INTERVAL_DAYS = 3650


class Urgency(str, Enum):
    """Watering urgency tier."""
    ON_TRACK = "OnTrack"
    DUE_SOON = "DueSoon"
    OVERDUE = "Overdue"


@dataclass(frozen=True)
class WateringStatus:
    """Derived watering schedule for one plant."""

    next_water_date: date
    urgency: Urgency


def classify(
    last_watered: DateLike,
    interval_days: int,
    today: DateLike,
) -> WateringStatus:
    """
    Compute the next watering date and urgency tier.

    ``interval_days`` is expected to be validated already (>= 1).

    Args:
        last_watered: Date the plant was last watered
        interval_days: Days between waterings
        today: Reference date

    Returns:
        WateringStatus
    """
    next_water_date = add_days(last_watered, interval_days)
    diff = days_between(today, next_water_date)

    if diff < 0:
        urgency = Urgency.OVERDUE
    elif diff <= DUE_SOON_WINDOW_DAYS:
        urgency = Urgency.DUE_SOON
    else:
        urgency = Urgency.ON_TRACK

    return WateringStatus(next_water_date=next_water_date, urgency=urgency)


def ensure_schedulable(last_watered: DateLike, interval_days: int) -> date:
    """
    Check that a schedule has a representable next watering date.

    Returns:
        The next watering date

    Raises:
        ScheduleOutOfRange: If ``last_watered + interval_days`` overflows
    """
    try:
        return add_days(last_watered, interval_days)
    except OverflowError:
        raise ScheduleOutOfRange(last_watered, interval_days) from None


class UrgencyClassifier:
    """
    Classifier bound to a clock.

    Usage:
        classifier = UrgencyClassifier()
        status = classifier.status_for(plant.last_watered, plant.interval_days)

        # Tests pin the date
        classifier = UrgencyClassifier(clock=lambda: date(2025, 9, 8))
    """

    def __init__(self, clock: Callable[[], date] = utc_today):
        self.clock = clock

    def status_for(self, last_watered: DateLike, interval_days: int) -> WateringStatus:
        """Classify against the clock's current date."""
        return classify(last_watered, interval_days, self.clock())
