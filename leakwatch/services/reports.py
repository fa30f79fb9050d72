"""
Report entity service.

Creation with validation, scoped retrieval and listing, and the ordered
photo list operations. Scoping lives here so no caller can list or read
another reporter's reports by forgetting a filter.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from leakwatch.config import get_logger, get_settings
from leakwatch.db.models import IssueType, Report, ReportStatus, Severity, User, utcnow
from leakwatch.db.queries import add_report, get_report_by_id
from leakwatch.db.queries import list_reports as query_reports_for_owner
from leakwatch.services.exceptions import NotFound, ValidationError
from leakwatch.services.location import (
    Location,
    build_location,
    location_columns,
    location_of,
)
from leakwatch.services.parsing import parse_enum
from leakwatch.services.policy import Operation, authorize, is_permitted

logger = get_logger(__name__)

T = TypeVar("T")


# =============================================================================
# Scope
# =============================================================================


@dataclass(frozen=True)
class ReportScope:
    """The reports a caller may see: all of them, or those of one owner."""

    owner_id: UUID | None = None

    @classmethod
    def everything(cls) -> "ReportScope":
        return cls(owner_id=None)

    @classmethod
    def owned_by(cls, user_id: UUID) -> "ReportScope":
        return cls(owner_id=user_id)

    @property
    def is_everything(self) -> bool:
        return self.owner_id is None

    def contains(self, report: Report) -> bool:
        return self.owner_id is None or report.user_id == self.owner_id


def scope_for(user: User, *, everything: bool = False) -> ReportScope:
    """
    Build the scope a user reads reports through.

    Operators asking for everything get every report; everyone else
    (and operators asking for their own) are limited to reports they own.

    Raises:
        Forbidden: If a reporter asks for every report.
    """
    if everything:
        authorize(user, Operation.LIST_ALL_REPORTS)
        return ReportScope.everything()
    return ReportScope.owned_by(user.id)


def viewing_scope(user: User) -> ReportScope:
    """Scope for reading single reports: operators see all, reporters their own."""
    if is_permitted(user, Operation.LIST_ALL_REPORTS):
        return ReportScope.everything()
    return ReportScope.owned_by(user.id)


# =============================================================================
# Creation
# =============================================================================


def validate_photos(photos: Sequence[str] | None, *, field: str = "photos") -> list[str]:
    """
    Check a list of encoded photo payloads.

    Raises:
        ValidationError: If a payload is not a non-empty string, is too long,
            or there are more photos than allowed.
    """
    settings = get_settings()
    photos = list(photos or [])

    if len(photos) > settings.max_photos_per_report:
        raise ValidationError(
            f"At most {settings.max_photos_per_report} photos per report",
            fields=[field],
        )
    for photo in photos:
        if not isinstance(photo, str) or not photo.strip():
            raise ValidationError("Photos must be non-empty encoded strings", fields=[field])
        if len(photo) > settings.max_photo_length:
            raise ValidationError("Photo payload too large", fields=[field])
    return photos


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def new_report(
    owner: User,
    *,
    issue_type: IssueType | str | None,
    severity: Severity | str | None,
    description: str | None,
    location: Location | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
    address: str | None = None,
    photos: Sequence[str] | None = None,
    now: datetime | None = None,
) -> Report:
    """
    Build a validated, unsaved report owned by `owner`.

    The location is given either built, or as its raw parts (latitude,
    longitude, address). The report starts PENDING and unassigned with
    created_at == updated_at.

    Raises:
        ValidationError: One error naming every missing or malformed field.
    """
    problems: list[ValidationError] = []

    missing = [
        name
        for name, value in (
            ("issue_type", issue_type),
            ("severity", severity),
            ("description", description),
        )
        if _blank(value)
    ]
    if missing:
        problems.append(
            ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)
        )

    def _check(parse: Callable[[], T]) -> T | None:
        try:
            return parse()
        except ValidationError as e:
            problems.append(e)
            return None

    parsed_issue_type = None
    if not _blank(issue_type):
        parsed_issue_type = _check(lambda: parse_enum(IssueType, issue_type, "issue_type"))
    parsed_severity = None
    if not _blank(severity):
        parsed_severity = _check(lambda: parse_enum(Severity, severity, "severity"))
    if location is None:
        location = _check(lambda: build_location(latitude, longitude, address))
    checked_photos = _check(lambda: validate_photos(photos))

    if problems:
        if len(problems) == 1:
            raise problems[0]
        fields = [name for problem in problems for name in problem.fields]
        raise ValidationError(
            "; ".join(problem.message for problem in problems),
            fields=list(dict.fromkeys(fields)),
        )

    timestamp = now or utcnow()
    report = Report(
        user_id=owner.id,
        issue_type=parsed_issue_type,
        severity=parsed_severity,
        description=description.strip(),
        photos=checked_photos,
        status=ReportStatus.PENDING,
        assigned_to=None,
        created_at=timestamp,
        updated_at=timestamp,
        resolved_at=None,
        **location_columns(location),
    )
    report.owner = owner
    return report


async def create_report(
    session: AsyncSession,
    owner: User,
    *,
    issue_type: IssueType | str | None,
    severity: Severity | str | None,
    description: str | None,
    location: Location | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
    address: str | None = None,
    photos: Sequence[str] | None = None,
) -> Report:
    """Validate and persist a new report for `owner`."""
    report = await add_report(
        session,
        new_report(
            owner,
            issue_type=issue_type,
            severity=severity,
            description=description,
            location=location,
            latitude=latitude,
            longitude=longitude,
            address=address,
            photos=photos,
        ),
    )
    logger.info(
        "Report created",
        report_id=str(report.id),
        user_id=str(owner.id),
        issue_type=report.issue_type.value,
        severity=report.severity.value,
        location_kind=location_of(report).kind.value,
        photo_count=len(report.photos),
    )
    return report


# =============================================================================
# Retrieval
# =============================================================================


async def get_report(
    session: AsyncSession,
    report_id: UUID,
    scope: ReportScope | None = None,
) -> Report:
    """
    Get a report inside a scope.

    A report outside the scope is reported as not found so its existence
    is not disclosed.

    Raises:
        NotFound: If the report does not exist or is outside the scope.
    """
    report = await get_report_by_id(session, report_id)
    if report is None or not (scope or ReportScope.everything()).contains(report):
        raise NotFound("report", report_id)
    return report


async def list_reports(session: AsyncSession, scope: ReportScope) -> list[Report]:
    """List the reports in a scope, newest first."""
    return await query_reports_for_owner(session, owner_id=scope.owner_id)


# =============================================================================
# Photos
# =============================================================================


def touch(report: Report) -> None:
    """Advance updated_at, strictly later than its previous value."""
    now = utcnow()
    if report.updated_at is not None and now <= report.updated_at:
        now = report.updated_at + timedelta(microseconds=1)
    report.updated_at = now


def append_photos(report: Report, photos: Sequence[str]) -> list[str]:
    """
    Append photos to the end of a report's photo list.

    Raises:
        ValidationError: If the payloads are invalid or the result would
            exceed the per-report limit.
    """
    added = validate_photos(photos)
    if not added:
        raise ValidationError("No photos provided", fields=["photos"])
    combined = validate_photos([*(report.photos or []), *added])

    report.photos = combined
    touch(report)
    return combined


def remove_photo(report: Report, index: int) -> str:
    """
    Remove the photo at `index`, keeping the order of the others.

    Raises:
        NotFound: If there is no photo at that position.
    """
    photos = list(report.photos or [])
    if not 0 <= index < len(photos):
        raise NotFound("photo", index)

    removed = photos.pop(index)
    report.photos = photos
    touch(report)
    return removed
