"""CSV export of report lists."""

import csv
import io
from collections.abc import Iterable

from leakwatch.db.models import Report
from leakwatch.services.location import location_of

EXPORT_COLUMNS = [
    "id",
    "created_at",
    "updated_at",
    "status",
    "severity",
    "issue_type",
    "description",
    "location",
    "latitude",
    "longitude",
    "address",
    "assigned_to",
    "reporter_email",
    "reporter_name",
    "photo_count",
    "resolved_at",
]


def report_row(report: Report) -> dict[str, str]:
    """One CSV row for a report."""
    location = location_of(report)
    point = location.map_point
    owner = report.owner

    return {
        "id": str(report.id),
        "created_at": report.created_at.isoformat(),
        "updated_at": report.updated_at.isoformat(),
        "status": report.status.value,
        "severity": report.severity.value,
        "issue_type": report.issue_type.value,
        "description": report.description,
        "location": location.display_text,
        "latitude": "" if point is None else f"{point.latitude:.6f}",
        "longitude": "" if point is None else f"{point.longitude:.6f}",
        "address": location.address or "",
        "assigned_to": report.assigned_to or "",
        "reporter_email": owner.email if owner else "",
        "reporter_name": (owner.display_name or "") if owner else "",
        "photo_count": str(len(report.photos or [])),
        "resolved_at": report.resolved_at.isoformat() if report.resolved_at else "",
    }


def reports_to_csv(reports: Iterable[Report]) -> str:
    """Render reports as CSV with a header row, in the given order."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    for report in reports:
        writer.writerow(report_row(report))
    return buffer.getvalue()
