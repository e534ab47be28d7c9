# Role: Timex expressions for appointment dates. Parses/classifies strings like "2023-05-01",
# "XXXX-05-01", "2023-05-01T14:00" or "2023-05-01TMO", turns free user text into one, and renders
# it back as natural language. Used by the date resolver, the appointment dialog and the router.

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Set

from dateutil import parser as date_parser


class TimexType:
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    PART_OF_DAY = "partofday"
    DEFINITE = "definite"


PARTS_OF_DAY = {
    "MO": "morning",
    "AF": "afternoon",
    "EV": "evening",
    "NI": "night",
    "DT": "daytime",
}

_PART_OF_DAY_WORDS = {
    "morning": "MO",
    "afternoon": "AF",
    "evening": "EV",
    "tonight": "NI",
    "night": "NI",
    "daytime": "DT",
}

_TIMEX_RE = re.compile(
    r"^(?:(?P<year>\d{4}|XXXX)-(?P<month>\d{2}|XX)-(?P<day>\d{2}|XX))?"
    r"(?:T(?:(?P<pod>MO|AF|EV|NI|DT)|(?P<hour>\d{2})(?::(?P<minute>\d{2}))?(?::\d{2})?))?$"
)

_CLOCK_12H_RE = re.compile(
    r"\b(?:at\s+)?(\d{1,2})(?::(\d{2}))?\s*(am|pm|a\.m\.|p\.m\.)(?![a-z])", re.IGNORECASE
)
_CLOCK_24H_RE = re.compile(r"\b(?:at\s+)?([01]?\d|2[0-3]):([0-5]\d)\b")
_NOON_RE = re.compile(r"\b(?:at\s+)?(noon|midday)\b", re.IGNORECASE)
_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True)
class TimexProperty:
    year: Optional[int] = None
    month: Optional[int] = None
    day_of_month: Optional[int] = None
    hour: Optional[int] = None
    minute: Optional[int] = None
    part_of_day: Optional[str] = None

    @classmethod
    def parse(cls, timex: Optional[str]) -> "TimexProperty":
        """
        Parse a timex string. Empty/None means "nothing known".
        Raises ValueError when the string is not a timex this bot understands.
        """
        text = (timex or "").strip()
        if not text:
            return cls()

        m = _TIMEX_RE.match(text)
        if not m:
            raise ValueError(f"Unsupported timex expression: {timex!r}")

        def _num(name: str) -> Optional[int]:
            raw = m.group(name)
            if raw is None or raw.startswith("X"):
                return None
            return int(raw)

        prop = cls(
            year=_num("year"),
            month=_num("month"),
            day_of_month=_num("day"),
            hour=_num("hour"),
            minute=_num("minute") if m.group("hour") is not None else None,
            part_of_day=m.group("pod"),
        )

        # Key line: reject impossible calendar days and clock times early (e.g. 2023-02-30, T25:00).
        if prop.year is not None and prop.month is not None and prop.day_of_month is not None:
            date(prop.year, prop.month, prop.day_of_month)
        if (prop.hour is not None and prop.hour > 23) or (prop.minute is not None and prop.minute > 59):
            raise ValueError(f"Invalid clock time in timex: {timex!r}")
        return prop

    @property
    def has_date(self) -> bool:
        return self.month is not None and self.day_of_month is not None

    @property
    def has_full_date(self) -> bool:
        return self.year is not None and self.has_date

    @property
    def types(self) -> Set[str]:
        out: Set[str] = set()
        if self.has_date:
            out.add(TimexType.DATE)
        if self.hour is not None:
            out.add(TimexType.TIME)
        if self.part_of_day is not None:
            out.add(TimexType.PART_OF_DAY)
        if TimexType.DATE in out and (self.hour is not None or self.part_of_day is not None):
            out.add(TimexType.DATETIME)
        # A day is definite only when nothing about it is vague (a part-of-day is vague).
        if self.has_full_date and self.part_of_day is None:
            out.add(TimexType.DEFINITE)
        return out

    def date_value(self) -> Optional[date]:
        if not self.has_full_date:
            return None
        return date(self.year, self.month, self.day_of_month)

    def datetime_value(self) -> Optional[datetime]:
        day = self.date_value()
        if day is None:
            return None
        return datetime(day.year, day.month, day.day, self.hour or 0, self.minute or 0)


def _safe_parse(timex: Optional[str]) -> Optional[TimexProperty]:
    try:
        return TimexProperty.parse(timex)
    except ValueError:
        return None


def is_definite(timex: Optional[str]) -> bool:
    prop = _safe_parse(timex)
    return prop is not None and TimexType.DEFINITE in prop.types


def is_ambiguous(timex: Optional[str]) -> bool:
    return not is_definite(timex)


def needs_date(timex: Optional[str]) -> bool:
    # Absent, malformed, or a date that is missing year/month/day: only a new date can fix it.
    prop = _safe_parse(timex)
    return prop is None or not prop.has_full_date


def date_part(timex: Optional[str]) -> Optional[str]:
    text = (timex or "").strip()
    if not text:
        return None
    head = text.split("T")[0]
    return head or None


def merge(date_timex: str, time_timex: str) -> str:
    # time_timex is the "T..." suffix produced by parse_user_time.
    return f"{date_part(date_timex) or ''}{time_timex}"


def format_timex(day: date, time_timex: str = "") -> str:
    return f"{day.isoformat()}{time_timex}"


def parse_user_time(text: str) -> Optional[str]:
    """
    Extract a time from free text and return it as a timex suffix ("T15:00", "TMO"), or None.
    Exact clock times win over part-of-day words.
    """
    t = (text or "").strip().lower()
    if not t:
        return None

    m = _CLOCK_12H_RE.search(t)
    if m:
        hour = int(m.group(1))
        minute = int(m.group(2) or 0)
        if not 1 <= hour <= 12 or minute > 59:
            return None
        is_pm = m.group(3).startswith("p")
        hour = hour % 12 + (12 if is_pm else 0)
        return f"T{hour:02d}:{minute:02d}"

    m = _CLOCK_24H_RE.search(t)
    if m:
        return f"T{int(m.group(1)):02d}:{int(m.group(2)):02d}"

    if _NOON_RE.search(t):
        return "T12:00"

    for word, code in _PART_OF_DAY_WORDS.items():
        if re.search(rf"\b{word}\b", t):
            return f"T{code}"

    return None


def _strip_time_words(text: str) -> str:
    t = _CLOCK_12H_RE.sub(" ", text)
    t = _CLOCK_24H_RE.sub(" ", t)
    t = _NOON_RE.sub(" ", t)
    for word in _PART_OF_DAY_WORDS:
        t = re.sub(rf"\b(?:in the |this )?{word}\b", " ", t)
    t = re.sub(r"\b(?:at|on)\s*$", " ", t.strip())
    return re.sub(r"\s+", " ", t).strip(" ,.")


def _relative_day(text: str, today: date) -> Optional[date]:
    if text in {"today", "now"}:
        return today
    if text == "tomorrow":
        return today + timedelta(days=1)
    if text in {"day after tomorrow", "the day after tomorrow"}:
        return today + timedelta(days=2)

    words = text.split()
    if words and words[0] in {"next", "this", "on"}:
        words = words[1:]
    if len(words) == 1 and words[0] in _WEEKDAYS:
        # Key line: a bare weekday always means its next occurrence (never today).
        ahead = (_WEEKDAYS.index(words[0]) - today.weekday()) % 7 or 7
        return today + timedelta(days=ahead)
    return None


def _parse_calendar_date(text: str) -> Optional[str]:
    # 1) Parse with two different defaults
    # 2) Components that differ between the two parses were not supplied by the user
    # 3) A missing year is kept as "XXXX" (still ambiguous); a missing month/day is rejected
    try:
        first = date_parser.parse(text, default=datetime(2000, 1, 1), fuzzy=True)
        second = date_parser.parse(text, default=datetime(2001, 2, 2), fuzzy=True)
    except (ValueError, OverflowError):
        return None

    if first.month != second.month or first.day != second.day:
        return None

    year = f"{first.year:04d}" if first.year == second.year else "XXXX"
    return f"{year}-{first.month:02d}-{first.day:02d}"


def parse_user_date(text: str, today: date) -> Optional[str]:
    """
    Turn a user's answer into a timex expression, or None when no date can be read from it.

    Accepts timex/ISO strings ("2023-05-01", "2023-05-01T14:00"), relative words ("today",
    "tomorrow", "next friday") and calendar text understood by python-dateutil ("May 1 2023"),
    each optionally followed by a time ("3pm", "14:30", "morning").
    """
    raw = (text or "").strip()
    if not raw:
        return None

    if _safe_parse(raw) is not None:
        return raw

    low = raw.lower()
    time_timex = parse_user_time(low) or ""
    day_text = _strip_time_words(low)
    if not day_text:
        return None

    relative = _relative_day(day_text, today)
    if relative is not None:
        return format_timex(relative, time_timex)

    calendar = _parse_calendar_date(day_text)
    if calendar is None:
        return None
    return f"{calendar}{time_timex}"


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def _clock_text(hour: int, minute: int) -> str:
    h12 = hour % 12 or 12
    ampm = "AM" if hour < 12 else "PM"
    return f"{h12}{ampm}" if minute == 0 else f"{h12}:{minute:02d}{ampm}"


def to_natural_language(timex: Optional[str], reference: datetime) -> str:
    """Render a timex relative to `reference` ("tomorrow at 3PM", "1st May 2023 morning")."""
    prop = _safe_parse(timex)
    if prop is None or not prop.has_date:
        return timex or ""

    day = prop.date_value()
    if day is not None:
        delta = (day - reference.date()).days
        if delta == 0:
            day_text = "today"
        elif delta == 1:
            day_text = "tomorrow"
        elif delta == -1:
            day_text = "yesterday"
        else:
            day_text = f"{_ordinal(day.day)} {day.strftime('%B')} {day.year}"
    else:
        day_text = f"{_ordinal(prop.day_of_month)} {date(2000, prop.month, 1).strftime('%B')}"

    if prop.hour is not None:
        return f"{day_text} at {_clock_text(prop.hour, prop.minute or 0)}"
    if prop.part_of_day is not None:
        return f"{day_text} {PARTS_OF_DAY[prop.part_of_day]}"
    return day_text


def is_past(timex: Optional[str], reference: datetime) -> bool:
    # Date-only values compare by calendar day; values with a clock time compare exactly.
    prop = _safe_parse(timex)
    if prop is None or not prop.has_full_date:
        return False
    if prop.hour is not None:
        return prop.datetime_value() < reference
    return prop.date_value() < reference.date()


def is_future(timex: Optional[str], reference: datetime) -> bool:
    prop = _safe_parse(timex)
    if prop is None or not prop.has_full_date:
        return False
    if prop.hour is not None:
        return prop.datetime_value() > reference
    return prop.date_value() > reference.date()
