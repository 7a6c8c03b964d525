"""
Scheduling Module for PlantPal

Watering schedule derivation:
- Calendar date parsing, formatting and arithmetic
- Urgency tiers (OnTrack / DueSoon / Overdue)
"""

from plantpal.scheduling.date_math import (
    parse_calendar_date,
    format_calendar_date,
    add_days,
    days_between,
    today,
)
from plantpal.scheduling.urgency import (
    DUE_SOON_WINDOW_DAYS,
    MAX_INTERVAL_DAYS,
    Urgency,
    WateringStatus,
    UrgencyClassifier,
    classify,
    ensure_schedulable,
)

__all__ = [
    # Date math
    "parse_calendar_date",
    "format_calendar_date",
    "add_days",
    "days_between",
    "today",
    # Urgency
    "DUE_SOON_WINDOW_DAYS",
    "MAX_INTERVAL_DAYS",
    "Urgency",
    "WateringStatus",
    "UrgencyClassifier",
    "classify",
    "ensure_schedulable",
]
