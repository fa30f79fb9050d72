"""
Pydantic schemas for Reports API.
"""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, Field

from leakwatch.api.schemas.base import (
    CamelCaseModel,
    IDMixin,
    PaginatedResponse,
    TimestampMixin,
)
from leakwatch.db.models import IssueType, ReportStatus, Severity
from leakwatch.services.location import LocationKind


class ReportCreate(CamelCaseModel):
    """
    Schema for submitting a new report.

    Required fields are optional here so that the report service can name
    every missing field in one ValidationError.
    """

    issue_type: str | None = Field(
        default=None,
        validation_alias=AliasChoices("issue_type", "issueType", "classification"),
    )
    severity: str | None = None
    description: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    location_address: str | None = Field(
        default=None,
        validation_alias=AliasChoices("location_address", "locationAddress", "address"),
    )
    photos: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("photos", "image_urls", "imageUrls"),
    )


class ReportUpdate(CamelCaseModel):
    """Schema for a status and/or assignment change; only sent fields are applied."""

    status: str | None = None
    assigned_to: str | None = Field(
        default=None,
        validation_alias=AliasChoices("assigned_to", "assignedTo", "assignee"),
    )


class PhotosAppend(CamelCaseModel):
    """Photos to append to a report, in order."""

    photos: list[str] = Field(..., min_length=1)


class LocationResponse(CamelCaseModel):
    """Report location: coordinates, address, or both."""

    kind: LocationKind
    latitude: float | None = None
    longitude: float | None = None
    address: str | None = None
    display_text: str


class ReportOwnerSummary(IDMixin):
    """Who filed a report."""

    email: str
    display_name: str | None = None


class ReportResponse(IDMixin, TimestampMixin):
    """Full report response."""

    issue_type: IssueType
    severity: Severity
    description: str
    location: LocationResponse
    photos: list[str]
    status: ReportStatus
    assigned_to: str | None = None
    resolved_at: datetime | None = None
    user: ReportOwnerSummary


class ReportListResponse(PaginatedResponse[ReportResponse]):
    """Paginated list of reports."""

    pass


class ReportStatsResponse(CamelCaseModel):
    """Report statistics for the operator dashboard."""

    total: int
    pending: int
    in_progress: int
    resolved: int
    critical: int
    total_users: int
    by_severity: dict[str, int] = Field(default_factory=dict)
    by_issue_type: dict[str, int] = Field(default_factory=dict)


class TimelineEvent(CamelCaseModel):
    """A single event in a report's timeline."""

    event_type: str  # created, status_change, assignment, updated, photo_added, photo_removed
    timestamp: datetime
    description: str
    actor: str | None = None
    metadata: dict = Field(default_factory=dict)


class PhotoRemovedResponse(CamelCaseModel):
    """Result of removing one photo."""

    report_id: UUID
    index: int
    remaining: int
