"""Timestamp parsing for the chat-history export.

The export writes every message date in one English layout, e.g.
``Sunday, March 12, 2023 at 4:05pm PST``. Timezone abbreviations are
read as fixed UTC offsets from ``ZONE_OFFSETS``; there is no tz database
lookup, and an abbreviation missing from the table is an error rather
than a guess.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Mapping, Optional, Pattern

from threadfilter.export.errors import DateFormatError

DateParser = Callable[[str], datetime]

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# Hours east of UTC. IST and other ambiguous abbreviations are absent.
ZONE_OFFSETS: Dict[str, float] = {
    "UTC": 0, "GMT": 0, "WET": 0,
    "BST": 1, "WEST": 1, "CET": 1, "CEST": 2, "EET": 2, "EEST": 3, "MSK": 3,
    "NST": -3.5, "NDT": -2.5, "AST": -4, "ADT": -3,
    "EST": -5, "EDT": -4, "CST": -6, "CDT": -5,
    "MST": -7, "MDT": -6, "PST": -8, "PDT": -7,
    "AKST": -9, "AKDT": -8, "HST": -10,
    "SGT": 8, "HKT": 8, "AWST": 8, "JST": 9, "KST": 9,
    "ACST": 9.5, "AEST": 10, "AEDT": 11, "NZST": 12, "NZDT": 13,
}

EXPORT_PATTERN = re.compile(
    r"(?P<weekday>[A-Za-z]+), (?P<month>[A-Za-z]+) (?P<day>\d{1,2}), (?P<year>\d{4})"
    r" at (?P<hour>\d{1,2}):(?P<minute>\d{2})(?P<ampm>am|pm) (?P<zone>[A-Z]{2,5})"
)


def _zones(offsets: Mapping[str, float]) -> Dict[str, timezone]:
    return {name: timezone(timedelta(hours=hours), name) for name, hours in offsets.items()}


class DateLayout:
    """One human-readable date layout plus the zone names it may carry.

    ``pattern`` must define the named groups ``weekday``, ``month``,
    ``day``, ``year``, ``hour``, ``minute``, ``ampm`` and ``zone``.
    Instances are callable, so a layout can be passed anywhere a
    ``DateParser`` is expected.
    """

    def __init__(
        self,
        pattern: Pattern[str],
        example: str,
        zone_offsets: Optional[Mapping[str, float]] = None,
    ):
        self.pattern = pattern
        self.example = example
        self.zones = _zones(ZONE_OFFSETS if zone_offsets is None else zone_offsets)

    def parse(self, text: str) -> datetime:
        match = self.pattern.fullmatch(text.strip())
        if not match:
            raise DateFormatError(text, f"expected a date like {self.example!r}")

        if match["weekday"] not in WEEKDAYS:
            raise DateFormatError(text, f"unknown weekday {match['weekday']!r}")
        if match["month"] not in MONTHS:
            raise DateFormatError(text, f"unknown month {match['month']!r}")

        zone = self.zones.get(match["zone"])
        if zone is None:
            raise DateFormatError(text, f"unknown timezone abbreviation {match['zone']!r}")

        hour = int(match["hour"])
        minute = int(match["minute"])
        if not 1 <= hour <= 12 or minute > 59:
            raise DateFormatError(text, "time of day out of range")
        hour %= 12
        if match["ampm"] == "pm":
            hour += 12

        try:
            return datetime(
                int(match["year"]),
                MONTHS.index(match["month"]) + 1,
                int(match["day"]),
                hour,
                minute,
                tzinfo=zone,
            )
        except ValueError as exc:
            raise DateFormatError(text, str(exc)) from exc

    __call__ = parse


EXPORT_LAYOUT = DateLayout(EXPORT_PATTERN, example="Sunday, March 12, 2023 at 4:05pm PST")


def parse_date(text: str) -> datetime:
    """Parse an export timestamp such as ``Monday, January 2, 2023 at 3:04pm PST``."""
    return EXPORT_LAYOUT.parse(text)
