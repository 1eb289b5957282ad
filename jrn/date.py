# -*- coding: utf-8 -*-
"""Calendar date value used as the journal entry key.

Text form is ``Y-MM-DD`` with an unpadded, possibly negative year
(``2024-01-01``, ``-44-03-15``). :meth:`Date.parse` also understands
``today`` and ``today-N``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import calendar
import datetime as _dt
import re

from .errors import (
    InvalidCalendarDate,
    InvalidTodayOffset,
    NotNumeric,
    WrongFieldCount,
)

TODAY_KEYWORD = "today"

_INT_RE = re.compile(r"\+?[0-9]+")
_OFFSET_RE = re.compile(r"[0-9]+")

# Field widths follow the stored format: signed 32-bit year, 8-bit month/day.
YEAR_MIN = -(2 ** 31)
YEAR_MAX = 2 ** 31 - 1
SMALL_MAX = 255


def days_in_month(year: int, month: int) -> int:
    """Days in *month* of the proleptic Gregorian *year* (year 0 is leap)."""
    if month == 2:
        return 29 if calendar.isleap(year) else 28
    if month in (4, 6, 9, 11):
        return 30
    return 31


@dataclass(frozen=True, order=True)
class Date:
    """A year/month/day triple. Orders by (year, month, day)."""

    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12 or not 1 <= self.day <= days_in_month(self.year, self.month):
            raise InvalidCalendarDate(f"{self.year}-{self.month:02d}-{self.day:02d} is not a valid date")

    def __str__(self) -> str:
        return f"{self.year}-{self.month:02d}-{self.day:02d}"

    # -----------------------------------------------------------------
    # Constructors
    # -----------------------------------------------------------------

    @classmethod
    def from_date(cls, value: _dt.date) -> "Date":
        return cls(value.year, value.month, value.day)

    @classmethod
    def today(cls, clock: Optional[_dt.date] = None) -> "Date":
        """Return *clock* as a Date, or the local current date if not given."""
        return cls.from_date(clock if clock is not None else _dt.date.today())

    @classmethod
    def parse(cls, text: str, today: Optional[_dt.date] = None) -> "Date":
        """Parse ``YYYY-MM-DD``, ``today`` or ``today-N``.

        Raises a :class:`~jrn.errors.DateParseError` subclass naming what was
        wrong with *text*.
        """
        s = text.strip().lower()

        if s.startswith(TODAY_KEYWORD):
            return cls._parse_relative(s[len(TODAY_KEYWORD):].strip(), today)
        return cls.parse_absolute(s)

    @classmethod
    def parse_absolute(cls, text: str) -> "Date":
        """Parse only the ``YYYY-MM-DD`` form, as written in journal files."""
        s = text.strip()
        sign = 1
        if s.startswith("-"):
            sign, s = -1, s[1:]

        fields = s.split("-")
        if len(fields) != 3:
            raise WrongFieldCount(f"expected YYYY-MM-DD, got {text!r}")

        if not all(_INT_RE.fullmatch(f) for f in fields):
            raise NotNumeric(f"date fields must be integers: {text!r}")
        try:
            year, month, day = sign * int(fields[0]), int(fields[1]), int(fields[2])
        except ValueError as exc:
            # more digits than int() will convert
            raise NotNumeric(f"date field out of range: {text[:40]!r}") from exc
        if not YEAR_MIN <= year <= YEAR_MAX or month > SMALL_MAX or day > SMALL_MAX:
            raise NotNumeric(f"date field out of range: {text!r}")

        return cls(year, month, day)

    @classmethod
    def _parse_relative(cls, rest: str, today: Optional[_dt.date]) -> "Date":
        if not rest:
            return cls.today(today)
        if not rest.startswith("-"):
            raise InvalidTodayOffset(f"expected today-N, got 'today{rest}'")
        digits = rest[1:].strip()
        if not _OFFSET_RE.fullmatch(digits):
            raise InvalidTodayOffset(f"offset must be a non-negative integer, got {digits!r}")

        base = today if today is not None else _dt.date.today()
        try:
            return cls.from_date(base - _dt.timedelta(days=int(digits)))
        except (ValueError, OverflowError) as exc:
            raise InvalidCalendarDate(f"today-{digits[:40]} is out of range") from exc

    # -----------------------------------------------------------------
    # Conversions
    # -----------------------------------------------------------------

    def to_date(self) -> _dt.date:
        """Return a :class:`datetime.date`; only years 1..9999 are representable."""
        try:
            return _dt.date(self.year, self.month, self.day)
        except ValueError as exc:
            raise InvalidCalendarDate(f"{self} is outside datetime.date's range") from exc
