"""Resolve user supplied day references into calendar dates."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta

RELATIVE_DAYS = {
    "yesterday": -1,
    "today": 0,
    "tomorrow": 1,
}

ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)


class DateParseError(ValueError):
    """Raised when a --to/--from value is neither a keyword nor YYYY-MM-DD."""

    def __init__(self, field_name: str, value: str):
        self.field_name = field_name
        self.value = value
        super().__init__(
            f'unable to parse the value of "{field_name}": {value!r} '
            f"(expected YYYY-MM-DD or one of {', '.join(RELATIVE_DAYS)})"
        )


@dataclass(frozen=True)
class TimeTargets:
    """The day tasks are moved from and the day they are moved to."""

    to: date
    from_: date


def resolve_date(value: str, field_name: str, today: date | None = None) -> date:
    """Convert a single day reference into a date.

    Args:
        value: "yesterday", "today", "tomorrow" or a YYYY-MM-DD string.
        field_name: Name reported in the error ("to" or "from").
        today: Reference date; defaults to the local current date.

    Returns:
        The resolved date.

    Raises:
        DateParseError: If the value can't be interpreted.
    """
    if value in RELATIVE_DAYS:
        base = today or date.today()
        return base + timedelta(days=RELATIVE_DAYS[value])

    if not ISO_DATE.fullmatch(value):
        raise DateParseError(field_name, value)
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise DateParseError(field_name, value) from e


def resolve_dates(to_input: str, from_input: str, today: date | None = None) -> TimeTargets:
    """Resolve the --to and --from values independently.

    No ordering is enforced: moving tasks backwards in time is allowed.
    """
    today = today or date.today()
    return TimeTargets(
        to=resolve_date(to_input, "to", today),
        from_=resolve_date(from_input, "from", today),
    )
