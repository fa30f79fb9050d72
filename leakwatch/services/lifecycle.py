"""
Report lifecycle state machine.

PENDING -> IN_PROGRESS -> RESOLVED. Any forward move is legal, including
PENDING -> RESOLVED; backward moves are rejected. Assignment is independent
of status and may be changed in the same update.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from leakwatch.config import get_logger
from leakwatch.db.models import Report, ReportStatus, User
from leakwatch.services.exceptions import InvalidTransition, ValidationError
from leakwatch.services.parsing import parse_enum
from leakwatch.services.policy import Operation, authorize
from leakwatch.services.reports import touch

logger = get_logger(__name__)

STATUS_RANK: dict[ReportStatus, int] = {
    ReportStatus.PENDING: 0,
    ReportStatus.IN_PROGRESS: 1,
    ReportStatus.RESOLVED: 2,
}

UPDATABLE_FIELDS = ("status", "assigned_to")


@dataclass(frozen=True)
class StatusChangeEvent:
    """
    Emitted when a report's status changes.

    Carries what an external dispatcher needs to tell the report's owner.
    """

    report_id: UUID
    previous_status: ReportStatus
    new_status: ReportStatus
    owner_email: str
    owner_name: str | None
    changed_by: UUID
    occurred_at: datetime


@dataclass
class UpdateOutcome:
    """What an update changed."""

    report: Report
    changed: dict[str, dict[str, Any]] = field(default_factory=dict)
    event: StatusChangeEvent | None = None

    @property
    def status_changed(self) -> bool:
        return "status" in self.changed


def parse_status(value: ReportStatus | str) -> ReportStatus:
    """
    Parse a status token (case-insensitive).

    Raises:
        ValidationError: If the token is not PENDING, IN_PROGRESS or RESOLVED.
    """
    return parse_enum(ReportStatus, value, "status")


def can_transition(current: ReportStatus, target: ReportStatus) -> bool:
    """True for forward moves and for staying put."""
    return STATUS_RANK[target] >= STATUS_RANK[current]


def check_transition(current: ReportStatus, target: ReportStatus) -> None:
    """
    Raises:
        InvalidTransition: If `target` is behind `current`.
    """
    if not can_transition(current, target):
        raise InvalidTransition(current.value, target.value)


def normalize_assignee(value: str | None) -> str | None:
    """Blank or missing assignee labels clear the assignment."""
    if value is None:
        return None
    label = str(value).strip()
    return label or None


def apply_update(
    report: Report,
    changes: Mapping[str, Any],
    actor: User,
) -> UpdateOutcome:
    """
    Apply a status and/or assignment change to a report.

    Only keys present in `changes` are touched. Everything is validated
    before anything is written, so a rejected update leaves the report
    untouched. updated_at always advances.

    Args:
        report: Report to change (owner must be loaded)
        changes: Subset of {"status", "assigned_to"}
        actor: User making the change

    Returns:
        UpdateOutcome with per-field old/new values and, when the status
        changed, the StatusChangeEvent to dispatch.

    Raises:
        Forbidden: If the actor may not update reports.
        ValidationError: If no updatable field is given or status is unknown.
        InvalidTransition: If the status would move backwards.
    """
    authorize(actor, Operation.UPDATE_REPORT)

    provided = {key: changes[key] for key in UPDATABLE_FIELDS if key in changes}
    if not provided:
        raise ValidationError(
            "No updatable fields provided (status, assigned_to)",
            fields=list(UPDATABLE_FIELDS),
        )

    target_status: ReportStatus | None = None
    if "status" in provided:
        if provided["status"] is None:
            raise ValidationError("Status cannot be empty", fields=["status"])
        target_status = parse_status(provided["status"])
        check_transition(report.status, target_status)

    outcome = UpdateOutcome(report=report)
    previous_status = report.status

    if target_status is not None and target_status != previous_status:
        report.status = target_status
        outcome.changed["status"] = {
            "old": previous_status.value,
            "new": target_status.value,
        }
        if target_status == ReportStatus.RESOLVED and report.resolved_at is None:
            outcome.changed["resolved_at"] = {"old": None, "new": None}

    if "assigned_to" in provided:
        assignee = normalize_assignee(provided["assigned_to"])
        if assignee != report.assigned_to:
            outcome.changed["assigned_to"] = {
                "old": report.assigned_to,
                "new": assignee,
            }
            report.assigned_to = assignee

    touch(report)

    if "resolved_at" in outcome.changed:
        report.resolved_at = report.updated_at
        outcome.changed["resolved_at"]["new"] = report.resolved_at.isoformat()

    if outcome.status_changed:
        outcome.event = StatusChangeEvent(
            report_id=report.id,
            previous_status=previous_status,
            new_status=report.status,
            owner_email=report.owner.email,
            owner_name=report.owner.display_name,
            changed_by=actor.id,
            occurred_at=report.updated_at,
        )

    logger.info(
        "Report updated",
        report_id=str(report.id),
        actor_id=str(actor.id),
        fields=list(outcome.changed.keys()),
        status=report.status.value,
    )

    return outcome
