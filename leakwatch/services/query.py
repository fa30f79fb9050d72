"""
Report query engine: free-text search, filters and sorting.

Pure functions over report objects. The listing endpoints and the CSV
export both go through `query_reports`, so what an operator sees on screen
is exactly what they export.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from leakwatch.db.models import IssueType, Report, ReportStatus, Severity
from leakwatch.services.exceptions import ValidationError
from leakwatch.services.parsing import parse_enum

# Sentinel meaning "no constraint" for any filter
ALL = "all"

SEVERITY_RANK: dict[Severity, int] = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class SortKey(str, Enum):
    CREATED_AT = "createdAt"
    SEVERITY = "severity"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


_SORT_KEY_ALIASES = {
    "createdat": SortKey.CREATED_AT,
    "created_at": SortKey.CREATED_AT,
    "severity": SortKey.SEVERITY,
}


def _unset(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip().lower() in ("", ALL))


def _parse_sort_key(value) -> SortKey | None:
    if _unset(value):
        return None
    if isinstance(value, SortKey):
        return value
    key = _SORT_KEY_ALIASES.get(str(value).strip().lower())
    if key is None:
        raise ValidationError(
            "Invalid sortKey: must be createdAt or severity",
            fields=["sort_key"],
        )
    return key


def _parse_sort_dir(value) -> SortDirection:
    if _unset(value):
        return SortDirection.DESC
    if isinstance(value, SortDirection):
        return value
    try:
        return SortDirection(str(value).strip().lower())
    except ValueError:
        raise ValidationError(
            "Invalid sortDir: must be asc or desc",
            fields=["sort_dir"],
        ) from None


@dataclass(frozen=True)
class ReportQuery:
    """
    A normalised report query.

    None on any filter imposes no constraint. With no sort key the input
    order is kept.
    """

    text: str | None = None
    status: ReportStatus | None = None
    severity: Severity | None = None
    issue_type: IssueType | None = None
    sort_key: SortKey | None = None
    sort_dir: SortDirection = SortDirection.DESC

    @classmethod
    def from_params(
        cls,
        *,
        text: str | None = None,
        status: ReportStatus | str | None = None,
        severity: Severity | str | None = None,
        issue_type: IssueType | str | None = None,
        sort_key: SortKey | str | None = None,
        sort_dir: SortDirection | str | None = None,
    ) -> "ReportQuery":
        """
        Build a query from raw request parameters.

        Empty strings and "all" mean no constraint for the filters. The
        search text is only unset when empty or blank; "all" is searched for.

        Raises:
            ValidationError: If a filter or sort token is not recognised.
        """
        return cls(
            text=(text.strip() or None) if text else None,
            status=None if _unset(status) else parse_enum(ReportStatus, status, "status"),
            severity=None if _unset(severity) else parse_enum(Severity, severity, "severity"),
            issue_type=(
                None if _unset(issue_type) else parse_enum(IssueType, issue_type, "issue_type")
            ),
            sort_key=_parse_sort_key(sort_key),
            sort_dir=_parse_sort_dir(sort_dir),
        )


def searchable_text(report: Report) -> list[str]:
    """Fields the free-text search looks in."""
    owner = report.owner
    return [
        report.description or "",
        report.location_address or "",
        owner.email if owner is not None else "",
        (owner.display_name or "") if owner is not None else "",
        str(report.id),
    ]


def matches(report: Report, query: ReportQuery) -> bool:
    """True when a report satisfies every constraint of the query."""
    if query.status is not None and report.status != query.status:
        return False
    if query.severity is not None and report.severity != query.severity:
        return False
    if query.issue_type is not None and report.issue_type != query.issue_type:
        return False
    if query.text:
        needle = query.text.lower()
        if not any(needle in value.lower() for value in searchable_text(report)):
            return False
    return True


def _sort_value(report: Report, key: SortKey):
    if key == SortKey.SEVERITY:
        return SEVERITY_RANK[report.severity]
    return report.created_at


def query_reports(reports: Iterable[Report], query: ReportQuery) -> list[Report]:
    """
    Filter and sort reports.

    Never mutates its input. Sorting is stable: reports that compare equal
    keep their relative input order in both directions.
    """
    selected = [report for report in reports if matches(report, query)]

    if query.sort_key is None:
        return selected

    return sorted(
        selected,
        key=lambda report: _sort_value(report, query.sort_key),
        reverse=query.sort_dir == SortDirection.DESC,
    )
