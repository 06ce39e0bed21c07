"""Warranty status classification and reminder scheduling.

Everything here is pure: the same inputs always produce the same
WarrantyStatus, and the reference date is always passed in explicitly.
"""

from __future__ import annotations

import re
from datetime import date, timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from warranty_tracker.config import AlertPreferences
from warranty_tracker.models import WarrantyState, WarrantyStatus

EXPIRING_SOON_DAYS = 30

_NUMBER_WORDS = {
    "an": 1,
    "a": 1,
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
}

_DURATION_PART = re.compile(
    r"(?<![\w.,])(\d+(?:\.\d+)?|"
    + "|".join(sorted(_NUMBER_WORDS, key=len, reverse=True))
    + r")[\s-]*(years?|yrs?|y|months?|mos?|weeks?|wks?|w|days?|d)\b",
    re.IGNORECASE,
)

# Text allowed between two parts of one duration, as in "2 years, 6 months".
_PART_JOINER = re.compile(r"[\s,]*(?:(?:and|\+)\s*)?", re.IGNORECASE)


def parse_duration(text: str | None) -> relativedelta | None:
    """Parse a warranty duration such as "12 months" or "1 year 6 months".

    Only the first run of adjacent parts is read, so "1 year parts,
    2 years labour" is one year. Fractional years are accepted when they
    come to whole months ("1.5 years"); other fractions are not.

    Returns None when no positive duration can be read from the text
    (e.g. "lifetime", "N/A", "0 months", "1.5 months").
    """
    if not text:
        return None

    months = days = Decimal(0)
    previous_end: int | None = None
    for match in _DURATION_PART.finditer(text):
        if previous_end is not None and not _PART_JOINER.fullmatch(
            text, previous_end, match.start()
        ):
            break
        previous_end = match.end()
        amount = _to_amount(match.group(1))
        unit = match.group(2)[0].lower()
        if unit == "y":
            months += amount * 12
        elif unit == "m":
            months += amount
        elif unit == "w":
            days += amount * 7
        else:
            days += amount

    if months % 1 or days % 1:
        return None
    if months == days == 0:
        return None
    return relativedelta(months=int(months), days=int(days))


def compute_expiry(purchase_date: date, duration: relativedelta) -> date:
    """Add a duration to a purchase date using calendar arithmetic.

    Month and year steps land on the same day of month, clamped to the
    last valid day (Jan 31 + 1 month is Feb 28/29).
    """
    return purchase_date + duration


def build_alert_schedule(
    expiry_date: date,
    reference_date: date,
    preferences: AlertPreferences | None = None,
) -> list[date]:
    """Return enabled reminder dates strictly after reference_date, ascending."""
    prefs = preferences or AlertPreferences()
    candidates: list[date] = []
    if prefs.thirty_day:
        candidates.append(expiry_date - timedelta(days=30))
    if prefs.seven_day:
        candidates.append(expiry_date - timedelta(days=7))
    if prefs.day_of:
        candidates.append(expiry_date)
    return sorted(d for d in candidates if d > reference_date)


def classify(
    purchase_date: date | None,
    warranty_period: str | None,
    reference_date: date,
    *,
    preferences: AlertPreferences | None = None,
) -> WarrantyStatus:
    """Classify a warranty as active, expiring soon, expired or unknown."""
    duration = parse_duration(warranty_period)
    if purchase_date is None or duration is None:
        return WarrantyStatus(state=WarrantyState.UNKNOWN)

    expiry_date = compute_expiry(purchase_date, duration)
    days_until_expiry = (expiry_date - reference_date).days

    if days_until_expiry < 0:
        state = WarrantyState.EXPIRED
    elif days_until_expiry <= EXPIRING_SOON_DAYS:
        state = WarrantyState.EXPIRING_SOON
    else:
        state = WarrantyState.ACTIVE

    return WarrantyStatus(
        state=state,
        days_until_expiry=days_until_expiry,
        expiry_date=expiry_date,
        alert_schedule=build_alert_schedule(expiry_date, reference_date, preferences),
    )


def _to_amount(raw: str) -> Decimal:
    if raw[0].isdigit():
        return Decimal(raw)
    return Decimal(_NUMBER_WORDS[raw.lower()])
