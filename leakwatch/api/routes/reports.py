"""
Reports API endpoints.

Submission, scoped listing with search/filter/sort, status and assignment
updates, photo management, CSV export, statistics and timelines for water
infrastructure issue reports.
"""

import math
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response, status

from leakwatch.api.deps import DB, Notifier, require
from leakwatch.api.schemas import (
    LocationResponse,
    PhotoRemovedResponse,
    PhotosAppend,
    ReportCreate,
    ReportListResponse,
    ReportOwnerSummary,
    ReportResponse,
    ReportStatsResponse,
    ReportUpdate,
    TimelineEvent,
)
from leakwatch.config import get_logger
from leakwatch.db.models import AuditLog, Report
from leakwatch.db.queries import (
    create_audit_log,
    get_audit_logs_for_entity,
    get_report_stats,
)
from leakwatch.services.export import reports_to_csv
from leakwatch.services.lifecycle import apply_update
from leakwatch.services.location import location_of
from leakwatch.services.notifications import dispatch_status_change
from leakwatch.services.policy import AuthContext, Operation
from leakwatch.services.query import ReportQuery, query_reports
from leakwatch.services.reports import (
    ReportScope,
    append_photos,
    create_report,
    get_report,
    list_reports,
    remove_photo,
    scope_for,
    viewing_scope,
)

router = APIRouter()
logger = get_logger(__name__)


def build_report_response(report: Report) -> ReportResponse:
    """Build a ReportResponse from a Report model instance."""
    location = location_of(report)
    point = location.map_point

    return ReportResponse(
        id=report.id,
        created_at=report.created_at,
        updated_at=report.updated_at,
        issue_type=report.issue_type,
        severity=report.severity,
        description=report.description,
        location=LocationResponse(
            kind=location.kind,
            latitude=point.latitude if point else None,
            longitude=point.longitude if point else None,
            address=location.address,
            display_text=location.display_text,
        ),
        photos=list(report.photos or []),
        status=report.status,
        assigned_to=report.assigned_to,
        resolved_at=report.resolved_at,
        user=ReportOwnerSummary(
            id=report.owner.id,
            email=report.owner.email,
            display_name=report.owner.display_name,
        ),
    )


class ReportQueryParams:
    """Search, filter, sort and paging parameters shared by the list endpoints."""

    def __init__(
        self,
        text: str | None = None,
        report_status: str | None = Query(None, alias="status"),
        severity: str | None = None,
        issue_type: str | None = Query(None, alias="issueType"),
        sort_key: str | None = Query(None, alias="sortKey"),
        sort_dir: str | None = Query(None, alias="sortDir"),
        page: int = Query(1, ge=1),
        page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    ) -> None:
        self.text = text
        self.status = report_status
        self.severity = severity
        self.issue_type = issue_type
        self.sort_key = sort_key
        self.sort_dir = sort_dir
        self.page = page
        self.page_size = page_size

    def to_query(self) -> ReportQuery:
        return ReportQuery.from_params(
            text=self.text,
            status=self.status,
            severity=self.severity,
            issue_type=self.issue_type,
            sort_key=self.sort_key,
            sort_dir=self.sort_dir,
        )


QueryParams = Annotated[ReportQueryParams, Depends()]


async def _query_scope(db, scope: ReportScope, params: ReportQueryParams) -> list[Report]:
    """Load a scope and run the query engine over it."""
    query = params.to_query()
    return query_reports(await list_reports(db, scope), query)


def _paginate(reports: list[Report], params: ReportQueryParams) -> ReportListResponse:
    total = len(reports)
    start = (params.page - 1) * params.page_size
    page_items = reports[start : start + params.page_size]
    pages = math.ceil(total / params.page_size) if total > 0 else 0

    return ReportListResponse(
        items=[build_report_response(r) for r in page_items],
        total=total,
        page=params.page,
        page_size=params.page_size,
        pages=pages,
    )


# =============================================================================
# Collection endpoints (static paths before /{report_id})
# =============================================================================


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def submit_report(
    body: ReportCreate,
    db: DB,
    ctx: Annotated[AuthContext, Depends(require(Operation.CREATE_REPORT))],
) -> ReportResponse:
    """
    Submit a new report.

    Needs a classification, severity, description and a location
    (coordinates, an address, or both). Photos are optional.

    Raises:
        ValidationError: Naming every missing or malformed field.
    """
    report = await create_report(
        db,
        ctx.user,
        issue_type=body.issue_type,
        severity=body.severity,
        description=body.description,
        latitude=body.latitude,
        longitude=body.longitude,
        address=body.location_address,
        photos=body.photos,
    )

    await create_audit_log(
        db,
        entity_type="report",
        entity_id=report.id,
        action="create",
        actor_id=str(ctx.user_id),
        changes={
            "issue_type": report.issue_type.value,
            "severity": report.severity.value,
            "photo_count": len(report.photos),
        },
    )
    await db.commit()

    return build_report_response(report)


@router.get("", response_model=ReportListResponse)
async def list_all_reports(
    db: DB,
    ctx: Annotated[AuthContext, Depends(require(Operation.LIST_ALL_REPORTS))],
    params: QueryParams,
) -> ReportListResponse:
    """
    List every report, with search, filters, sorting and pagination.

    Without a sortKey reports come newest first.
    """
    reports = await _query_scope(db, scope_for(ctx.user, everything=True), params)

    logger.info(
        "Listed reports",
        user_id=str(ctx.user_id),
        total=len(reports),
        page=params.page,
    )
    return _paginate(reports, params)


@router.get("/user-reports", response_model=ReportListResponse)
async def list_own_reports(
    db: DB,
    ctx: Annotated[AuthContext, Depends(require(Operation.LIST_OWN_REPORTS))],
    params: QueryParams,
) -> ReportListResponse:
    """List the caller's own reports, with the same parameters as the full list."""
    reports = await _query_scope(db, scope_for(ctx.user), params)

    logger.info(
        "Listed own reports",
        user_id=str(ctx.user_id),
        total=len(reports),
        page=params.page,
    )
    return _paginate(reports, params)


@router.get("/export")
async def export_reports(
    db: DB,
    ctx: Annotated[AuthContext, Depends(require(Operation.EXPORT_REPORTS))],
    params: QueryParams,
) -> Response:
    """
    Export reports as CSV.

    Takes the same search, filter and sort parameters as the list and
    exports every matching report (no paging), in the same order.
    """
    reports = await _query_scope(db, scope_for(ctx.user, everything=True), params)

    logger.info("Exported reports", user_id=str(ctx.user_id), total=len(reports))

    return Response(
        content=reports_to_csv(reports),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="reports.csv"'},
    )


@router.get("/stats", response_model=ReportStatsResponse)
async def get_stats(
    db: DB,
    ctx: Annotated[AuthContext, Depends(require(Operation.VIEW_STATS))],
) -> ReportStatsResponse:
    """Get report statistics for the operator dashboard."""
    stats = await get_report_stats(db)

    logger.info("Report stats fetched", user_id=str(ctx.user_id))

    return ReportStatsResponse(**stats)


# =============================================================================
# Single report endpoints
# =============================================================================


@router.get("/{report_id}", response_model=ReportResponse)
async def get_single_report(
    report_id: UUID,
    db: DB,
    ctx: Annotated[AuthContext, Depends(require(Operation.VIEW_REPORT))],
) -> ReportResponse:
    """
    Get a single report.

    Reporters can only see their own reports; anyone else's is not found.
    """
    report = await get_report(db, report_id, viewing_scope(ctx.user))
    return build_report_response(report)


@router.put("/{report_id}", response_model=ReportResponse)
async def update_report(
    report_id: UUID,
    update: ReportUpdate,
    db: DB,
    ctx: Annotated[AuthContext, Depends(require(Operation.UPDATE_REPORT))],
    notifier: Notifier,
    background_tasks: BackgroundTasks,
) -> ReportResponse:
    """
    Update a report's status and/or assignee.

    Only the fields sent are changed. Status may only move forward.
    When the status changes the owner is notified after the change is
    committed; a failed notification does not undo it.

    Raises:
        ValidationError: If no field is sent or the status is unknown.
        InvalidTransition: If the status would move backwards.
    """
    report = await get_report(db, report_id)

    outcome = apply_update(report, update.model_dump(exclude_unset=True), ctx.user)

    if outcome.changed:
        await create_audit_log(
            db,
            entity_type="report",
            entity_id=report.id,
            action="update",
            actor_id=str(ctx.user_id),
            changes=outcome.changed,
        )

    await db.commit()

    if outcome.event is not None:
        background_tasks.add_task(dispatch_status_change, notifier, outcome.event)

    return build_report_response(report)


@router.post("/{report_id}/photos", response_model=ReportResponse)
async def add_photos(
    report_id: UUID,
    body: PhotosAppend,
    db: DB,
    ctx: Annotated[AuthContext, Depends(require(Operation.MANAGE_PHOTOS))],
) -> ReportResponse:
    """Append photos to the end of a report's photo list."""
    report = await get_report(db, report_id)
    photos = append_photos(report, body.photos)

    await create_audit_log(
        db,
        entity_type="report",
        entity_id=report.id,
        action="photo_added",
        actor_id=str(ctx.user_id),
        changes={"added": len(body.photos), "total": len(photos)},
    )
    await db.commit()

    logger.info(
        "Photos added to report",
        report_id=str(report.id),
        user_id=str(ctx.user_id),
        added=len(body.photos),
    )
    return build_report_response(report)


@router.delete("/{report_id}/photos/{index}", response_model=PhotoRemovedResponse)
async def delete_photo(
    report_id: UUID,
    index: int,
    db: DB,
    ctx: Annotated[AuthContext, Depends(require(Operation.MANAGE_PHOTOS))],
) -> PhotoRemovedResponse:
    """
    Remove one photo by position; the others keep their order.

    Raises:
        NotFound: If the report or the photo position does not exist.
    """
    report = await get_report(db, report_id)
    remove_photo(report, index)
    remaining = len(report.photos)

    await create_audit_log(
        db,
        entity_type="report",
        entity_id=report.id,
        action="photo_removed",
        actor_id=str(ctx.user_id),
        changes={"index": index, "remaining": remaining},
    )
    await db.commit()

    logger.info(
        "Photo removed from report",
        report_id=str(report.id),
        user_id=str(ctx.user_id),
        index=index,
    )
    return PhotoRemovedResponse(report_id=report.id, index=index, remaining=remaining)


def _timeline_event(log: AuditLog) -> TimelineEvent | None:
    changes = log.changes or {}

    if log.action == "create":
        return TimelineEvent(
            event_type="created",
            timestamp=log.created_at,
            description="Report submitted",
            actor=log.actor_id,
            metadata=changes,
        )
    if log.action == "update":
        if "status" in changes:
            old_s = changes["status"]["old"]
            new_s = changes["status"]["new"]
            return TimelineEvent(
                event_type="status_change",
                timestamp=log.created_at,
                description=f"Status changed from {old_s} to {new_s}",
                actor=log.actor_id,
                metadata=changes,
            )
        if "assigned_to" in changes:
            assignee = changes["assigned_to"]["new"]
            return TimelineEvent(
                event_type="assignment",
                timestamp=log.created_at,
                description=f"Assigned to {assignee}" if assignee else "Assignment cleared",
                actor=log.actor_id,
                metadata=changes,
            )
        return TimelineEvent(
            event_type="updated",
            timestamp=log.created_at,
            description=f"Updated fields: {', '.join(changes)}",
            actor=log.actor_id,
            metadata=changes,
        )
    if log.action == "photo_added":
        return TimelineEvent(
            event_type="photo_added",
            timestamp=log.created_at,
            description=f"{changes.get('added', 0)} photo(s) added",
            actor=log.actor_id,
            metadata=changes,
        )
    if log.action == "photo_removed":
        return TimelineEvent(
            event_type="photo_removed",
            timestamp=log.created_at,
            description=f"Photo {changes.get('index')} removed",
            actor=log.actor_id,
            metadata=changes,
        )
    return None


@router.get("/{report_id}/timeline", response_model=list[TimelineEvent])
async def get_timeline(
    report_id: UUID,
    db: DB,
    ctx: Annotated[AuthContext, Depends(require(Operation.VIEW_TIMELINE))],
) -> list[TimelineEvent]:
    """
    Get the chronological timeline of a report.

    Built from the audit trail: submission, status changes, assignments
    and photo changes.
    """
    report = await get_report(db, report_id)

    events: list[TimelineEvent] = []
    for log in await get_audit_logs_for_entity(db, "report", report.id):
        event = _timeline_event(log)
        if event is not None:
            events.append(event)

    if not events or events[0].event_type != "created":
        # Reports created before auditing still get their submission event
        events.insert(
            0,
            TimelineEvent(
                event_type="created",
                timestamp=report.created_at,
                description="Report submitted",
                actor=str(report.user_id),
            ),
        )

    logger.info(
        "Report timeline fetched",
        report_id=str(report_id),
        user_id=str(ctx.user_id),
        events=len(events),
    )
    return events
