"""Report export request builder.

Turns the flat report parameters into the body of ``POST v1/export/send``:

* :func:`resolve_date_range` maps a symbolic selector (or custom bounds) to a
  concrete inclusive :class:`DateInterval`.
* :data:`FIELD_CATALOG` mirrors the backend's exportable columns.
* :func:`project_fields` picks and orders catalog columns by requested id.
* :func:`build_report_request` composes the above with the scalar options.

Nothing here performs I/O or keeps state between calls; "now" is evaluated
per call unless injected.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from enum import StrEnum
from typing import Any

from _errors import InvalidRangeError

__all__ = [
    "DATE_RANGE_LABELS",
    "FIELD_CATALOG",
    "FILTERS",
    "FORMATS",
    "REPORT_KINDS",
    "TASK_TYPES",
    "DateInterval",
    "DateRange",
    "ExportableField",
    "ProjectedField",
    "ReportParameters",
    "build_report_request",
    "parse_instant",
    "project_fields",
    "resolve_date_range",
]


class DateRange(StrEnum):
    TODAY = "Today"
    THIS_WEEK = "ThisWeek"
    THIS_AND_LAST_WEEK = "ThisAndLastWeek"
    THIS_MONTH = "ThisMonth"
    THIS_YEAR = "ThisYear"
    YESTERDAY = "Yesterday"
    LAST_WEEK = "LastWeek"
    LAST_2_WEEKS = "Last2Weeks"
    LAST_4_WEEKS = "Last4Weeks"
    LAST_MONTH = "LastMonth"
    LAST_YEAR = "LastYear"
    CUSTOM = "Custom"

    @classmethod
    def parse(cls, value: str | DateRange) -> DateRange:
        """Accept a member, its name (case-insensitive) or its legacy index code."""
        if isinstance(value, DateRange):
            return value
        text = str(value).strip()
        if text.isascii() and text.isdigit():
            members = list(cls)
            index = int(text)
            if index < len(members):
                return members[index]
        else:
            for member in cls:
                if member.value.lower() == text.lower():
                    return member
        raise InvalidRangeError(f"Unknown date range: {value!r}")


DATE_RANGE_LABELS: dict[DateRange, str] = {
    DateRange.TODAY: "Today",
    DateRange.THIS_WEEK: "current Week",
    DateRange.THIS_AND_LAST_WEEK: "current 2 Weeks",
    DateRange.THIS_MONTH: "current Month",
    DateRange.THIS_YEAR: "current Year",
    DateRange.YESTERDAY: "Yesterday",
    DateRange.LAST_WEEK: "last Week",
    DateRange.LAST_2_WEEKS: "last 2 Weeks",
    DateRange.LAST_4_WEEKS: "last 4 Weeks",
    DateRange.LAST_MONTH: "last Month",
    DateRange.LAST_YEAR: "last Year",
    DateRange.CUSTOM: "Custom Range",
}

REPORT_KINDS: dict[int, str] = {0: "Data Report", 1: "Team Summary"}

TASK_TYPES: dict[str, str] = {
    "all": "All",
    "task": "Tasks",
    "mileage": "Mileage",
    "call": "Call",
}

FILTERS: dict[str, str] = {
    "all": "All",
    "billable": "Billable",
    "notBillable": "Not billable",
    "paid": "Paid",
    "unpaid": "Unpaid",
    "billed": "Billed",
    "outstanding": "Outstanding",
}

FORMATS: dict[str, str] = {"xlsx": "Excel (.xlsx)", "csv": "CSV (.csv)"}


# ---------------------------------------------------------------------------
# Date ranges
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DateInterval:
    """Closed calendar-date interval, both ends inclusive."""

    start: date
    end: date

    def as_wire(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


def _week_start(d: date, first_weekday: int) -> date:
    return d - timedelta(days=(d.weekday() - first_weekday) % 7)


def _month_start(d: date) -> date:
    return d.replace(day=1)


def _month_end(d: date) -> date:
    if d.month == 12:
        return date(d.year, 12, 31)
    return date(d.year, d.month + 1, 1) - timedelta(days=1)


def _previous_month(d: date) -> date:
    return _month_start(d) - timedelta(days=1)


def _weeks_back(today: date, first_weekday: int, weeks: int) -> DateInterval:
    """From the start of the week *weeks* back to the end of last week."""
    this_week = _week_start(today, first_weekday)
    return DateInterval(this_week - timedelta(weeks=weeks), this_week - timedelta(days=1))


_RANGES: dict[DateRange, Callable[[date, int], DateInterval]] = {
    DateRange.TODAY: lambda d, w: DateInterval(d, d),
    DateRange.THIS_WEEK: lambda d, w: DateInterval(
        _week_start(d, w), _week_start(d, w) + timedelta(days=6)
    ),
    DateRange.THIS_AND_LAST_WEEK: lambda d, w: DateInterval(
        _week_start(d, w) - timedelta(weeks=1), _week_start(d, w) + timedelta(days=6)
    ),
    DateRange.THIS_MONTH: lambda d, w: DateInterval(_month_start(d), _month_end(d)),
    DateRange.THIS_YEAR: lambda d, w: DateInterval(date(d.year, 1, 1), date(d.year, 12, 31)),
    DateRange.YESTERDAY: lambda d, w: DateInterval(d - timedelta(days=1), d - timedelta(days=1)),
    DateRange.LAST_WEEK: lambda d, w: _weeks_back(d, w, 1),
    DateRange.LAST_2_WEEKS: lambda d, w: _weeks_back(d, w, 2),
    DateRange.LAST_4_WEEKS: lambda d, w: _weeks_back(d, w, 4),
    DateRange.LAST_MONTH: lambda d, w: DateInterval(
        _month_start(_previous_month(d)), _previous_month(d)
    ),
    DateRange.LAST_YEAR: lambda d, w: DateInterval(
        date(d.year - 1, 1, 1), date(d.year - 1, 12, 31)
    ),
}


def parse_instant(value: str | date, zone: tzinfo | None = None) -> datetime:
    """Parse an ISO-8601 date/datetime, keeping any embedded UTC offset.

    Naive values are placed in *zone*. Seconds and microseconds are zeroed.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise ValueError(f"Invalid date/time {value!r}; use ISO-8601 format") from exc
    if parsed.tzinfo is None and zone is not None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed.replace(second=0, microsecond=0)


def resolve_date_range(
    selector: str | DateRange,
    now: datetime | None = None,
    custom_start: str | date | None = None,
    custom_end: str | date | None = None,
    zone: tzinfo | None = None,
    week_start: int = 0,
) -> DateInterval:
    """Resolve *selector* to a concrete interval relative to *now*.

    ``Custom`` without both bounds falls back to ``Today``.
    """
    selected = DateRange.parse(selector)
    if now is None:
        now = datetime.now(zone)
    elif zone is not None and now.tzinfo is not None:
        now = now.astimezone(zone)
    today = now.date()

    if selected is DateRange.CUSTOM:
        if custom_start and custom_end:
            return DateInterval(
                parse_instant(custom_start, zone).date(),
                parse_instant(custom_end, zone).date(),
            )
        selected = DateRange.TODAY

    return _RANGES[selected](today, week_start)


# ---------------------------------------------------------------------------
# Field catalog and projection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExportableField:
    id: int
    name: str


@dataclass(frozen=True)
class ProjectedField:
    id: int
    name: str
    position: int

    def as_wire(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "position": self.position}


# Mirrors the backend's column ids; 27 is reserved.
FIELD_CATALOG: tuple[ExportableField, ...] = tuple(
    ExportableField(fid, name)
    for fid, name in (
        (2, "Date"),
        (3, "Start Time"),
        (4, "End Time"),
        (5, "Abs. Duration"),
        (6, "Rel. Duration"),
        (7, "Abs. Salary"),
        (8, "Rel. Salary"),
        (9, "Description"),
        (10, "Location"),
        (11, "Feeling"),
        (12, "Billable"),
        (13, "Paid"),
        (14, "Type"),
        (15, "Origin"),
        (16, "Destination"),
        (17, "Distance"),
        (18, "Phone"),
        (19, "Project"),
        (20, "Client"),
        (21, "Pauses"),
        (22, "Expenses"),
        (23, "Expenses (paid)"),
        (24, "Expenses (unpaid)"),
        (25, "Expense Description"),
        (26, "Notes"),
        (28, "Tags"),
        (29, "Rate"),
        (30, "Factor"),
        (31, "Extra/h"),
        (32, "Rate (enabled)"),
        (33, "Task ID"),
        (34, "Project ID"),
        (35, "Username"),
    )
)


def project_fields(
    requested_ids: Sequence[str] | None,
    catalog: Sequence[ExportableField] = FIELD_CATALOG,
) -> list[ProjectedField]:
    """Select catalog columns in the caller's order.

    ``position`` is the index in *requested_ids*. Unknown ids are skipped and
    a column requested twice keeps only its first position.
    """
    if not requested_ids:
        return []
    projected: list[ProjectedField] = []
    seen: set[int] = set()
    for position, requested in enumerate(requested_ids):
        for entry in catalog:
            if str(entry.id) == str(requested).strip():
                if entry.id not in seen:
                    seen.add(entry.id)
                    projected.append(ProjectedField(entry.id, entry.name, position))
                break
    return projected


# ---------------------------------------------------------------------------
# Request assembly
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReportParameters:
    email: str
    report: int
    date_range: str | DateRange
    exported_fields: Sequence[str] | None = None
    start: str | None = None
    end: str | None = None
    project_ids: Sequence[str] | None = None
    type: str | None = "all"
    filter: str | None = "all"
    summarize: bool | None = None
    format: str | None = None
    filename: str | None = None

    def validate(self) -> None:
        if not self.email or not self.email.strip():
            raise ValueError("email is required.")
        if self.report not in REPORT_KINDS:
            raise ValueError(f"report must be one of {sorted(REPORT_KINDS)}, got {self.report!r}")
        if self.type is not None and self.type not in TASK_TYPES:
            raise ValueError(f"type must be one of {sorted(TASK_TYPES)}, got {self.type!r}")
        if self.filter is not None and self.filter not in FILTERS:
            raise ValueError(f"filter must be one of {sorted(FILTERS)}, got {self.filter!r}")
        if self.format is not None and self.format not in FORMATS:
            raise ValueError(f"format must be one of {sorted(FORMATS)}, got {self.format!r}")
        DateRange.parse(self.date_range)


def build_report_request(
    params: ReportParameters,
    now: datetime | None = None,
    zone: tzinfo | None = None,
    week_start: int = 0,
) -> dict[str, Any]:
    """Assemble the JSON body for ``POST v1/export/send``.

    Raises ``ValueError`` (or :class:`InvalidRangeError`) for invalid input.
    """
    params.validate()
    interval = resolve_date_range(
        params.date_range,
        now,
        custom_start=params.start,
        custom_end=params.end,
        zone=zone,
        week_start=week_start,
    )
    if interval.end < interval.start:
        raise ValueError("end must be on or after start.")

    body: dict[str, Any] = {"email": params.email.strip(), "report": params.report}
    optional: dict[str, Any] = {
        "filename": params.filename,
        "format": params.format,
        "projectIds": list(params.project_ids) if params.project_ids is not None else None,
        "type": params.type,
        "filter": params.filter,
        "summarize": params.summarize,
    }
    body.update({key: value for key, value in optional.items() if value is not None})
    body.update(interval.as_wire())
    body["exportedFields"] = [field.as_wire() for field in project_fields(params.exported_fields)]
    return body
