"""Input-field descriptors for the create/send forms.

Static field lists are declared once; :func:`compute_visible_fields` adds the
conditional ones from the values entered so far.  It is pure: callers that
need account state (teams enabled) look it up and pass the flag in.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any

from report_builder import (
    DATE_RANGE_LABELS,
    FIELD_CATALOG,
    FILTERS,
    FORMATS,
    REPORT_KINDS,
    TASK_TYPES,
    DateRange,
)

__all__ = ["FORMS", "InputField", "compute_visible_fields"]


@dataclass(frozen=True)
class InputField:
    key: str
    label: str
    type: str = "string"
    required: bool = False
    help_text: str | None = None
    default: str | None = None
    choices: tuple[tuple[str, str], ...] | None = None
    list: bool = False
    dynamic: str | None = None
    alters_dynamic_fields: bool = False

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.choices is not None:
            data["choices"] = [{"value": v, "label": label} for v, label in self.choices]
        return {k: v for k, v in data.items() if v not in (None, False)}


def _truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "yes", "1", "on"}


def _team_field(noun: str) -> InputField:
    return InputField(
        "teamId",
        "Team",
        required=True,
        help_text=f"Team of this {noun}",
        dynamic="team.id.name",
    )


# ---------------------------------------------------------------------------
# Static fields per form
# ---------------------------------------------------------------------------

_TEAM = (
    InputField("name", "Name", required=True, help_text="Name of this Team"),
    InputField("description", "Description", type="text", help_text="Description of this Team"),
)

_PROJECT = (
    InputField("title", "Title", required=True, help_text="Title of this Project"),
    InputField("employer", "Employer", required=True, help_text="Employer of this Project"),
    InputField("description", "Description", type="text", help_text="Description of this Project"),
    InputField("office", "Office", help_text="Office of this Project"),
    InputField("salary", "Salary", type="integer", help_text="Salary of this Project in cents"),
    InputField("color", "Color", help_text="Color of this Project (e.g. #ff0000)"),
)

_TASK = (
    InputField(
        "projectId",
        "Project",
        required=True,
        help_text="Project of this Task",
        dynamic="project.id.title",
        alters_dynamic_fields=True,
    ),
    InputField("startDateTime", "Start Date", type="datetime", required=True),
    InputField("endDateTime", "End Date", type="datetime", required=True),
    InputField("description", "Description", type="text", help_text="Description of this Task"),
    InputField("location", "Location", help_text="Location of work"),
    InputField(
        "billable",
        "Billable",
        type="boolean",
        help_text="Is the Task billable?",
        default="yes",
        alters_dynamic_fields=True,
    ),
)

_TASK_BILLING = (
    InputField("billed", "Billed", type="boolean", help_text="Was the Task billed?", default="no"),
    InputField("paid", "Paid", type="boolean", help_text="Was the Task paid?", default="no"),
)

_TASK_PROJECT_SCOPED = (
    InputField("rateId", "Rate", help_text="Rate of this Task", dynamic="rate.id.title"),
    InputField("tags", "Tags", help_text="Tags of this Task", dynamic="tag.id.name", list=True),
)

_TAG = (
    InputField("name", "Name", required=True, help_text="Name of this Tag"),
    InputField("color", "Color", type="integer", help_text="Color of this Tag"),
)

_RATE = (
    InputField("title", "Title", required=True, help_text="Title of this Rate"),
    InputField("factor", "Factor", type="number", help_text="Factor multiplies projects default rate"),
    InputField("extra", "Extra/h", type="number", help_text="Extra is added to the projects default rate"),
)

_REPORT_HEAD = (
    InputField("email", "Email", required=True),
    InputField(
        "report",
        "Report",
        type="integer",
        required=True,
        help_text="Type of Report",
        choices=tuple((str(k), v) for k, v in REPORT_KINDS.items()),
    ),
    InputField(
        "projectIds",
        "Projects",
        help_text="Includes Tasks of these Projects",
        dynamic="project.id.title",
        list=True,
    ),
    InputField(
        "dateRange",
        "Date Range",
        required=True,
        help_text="Date range of Report",
        choices=tuple((member.value, label) for member, label in DATE_RANGE_LABELS.items()),
        alters_dynamic_fields=True,
    ),
)

_REPORT_CUSTOM_RANGE = (
    InputField("start", "Start Date", type="datetime", required=True, help_text="Start date of this Report"),
    InputField("end", "End Date", type="datetime", required=True, help_text="End date of this Report"),
)

_REPORT_TAIL = (
    InputField(
        "type",
        "Type",
        help_text="Type of Tasks",
        default="all",
        choices=tuple(TASK_TYPES.items()),
    ),
    InputField(
        "filter",
        "Filter",
        help_text="Filter tasks",
        default="all",
        choices=tuple(FILTERS.items()),
    ),
    InputField(
        "exportedFields",
        "Exported Fields",
        required=True,
        list=True,
        choices=tuple((str(f.id), f.name) for f in FIELD_CATALOG),
    ),
    InputField("summarize", "Summarize data columns", type="boolean", help_text="Adds a summary row"),
    InputField("format", "Format", help_text="File format", choices=tuple(FORMATS.items())),
    InputField("filename", "Filename", help_text="Name of the file"),
)

FORMS: frozenset[str] = frozenset({"team", "project", "task", "tag", "rate", "report"})


def _report_fields(params: Mapping[str, Any]) -> list[InputField]:
    fields = list(_REPORT_HEAD)
    selector = params.get("dateRange")
    if selector is not None:
        try:
            is_custom = DateRange.parse(selector) is DateRange.CUSTOM
        except ValueError:
            is_custom = False
        if is_custom:
            fields.extend(_REPORT_CUSTOM_RANGE)
    fields.extend(_REPORT_TAIL)
    return fields


def _task_fields(params: Mapping[str, Any]) -> list[InputField]:
    fields = list(_TASK)
    if _truthy(params.get("billable", True)):
        fields.extend(_TASK_BILLING)
    if params.get("projectId"):
        fields.extend(_TASK_PROJECT_SCOPED)
    return fields


def compute_visible_fields(
    form: str,
    params: Mapping[str, Any] | None = None,
    *,
    teams_enabled: bool = False,
) -> list[InputField]:
    """Return the fields the *form* should show given the current *params*."""
    params = params or {}
    if form == "team":
        return list(_TEAM)
    if form == "project":
        head, rest = _PROJECT[:2], _PROJECT[2:]
        return [*head, *([_team_field("Project")] if teams_enabled else []), *rest]
    if form == "task":
        return _task_fields(params)
    if form == "tag":
        return [*_TAG, *([_team_field("Tag")] if teams_enabled else [])]
    if form == "rate":
        return [*([_team_field("Rate")] if teams_enabled else []), *_RATE]
    if form == "report":
        return _report_fields(params)
    raise ValueError(f"Unknown form {form!r}. Available: {sorted(FORMS)}")
