"""
End-to-end report lifecycle through the API.

A resident files a report, a technician works it to resolution, and the
resident is told about each status change.
"""

import pytest
from sqlalchemy import select

from leakwatch.db.models import AuditLog, ReportStatus, Severity

pytestmark = pytest.mark.asyncio


async def _submit(client, headers, **overrides) -> dict:
    body = {
        "issueType": "LEAKAGE",
        "severity": "HIGH",
        "description": "pipe burst",
        "address": "5 Elm St",
    }
    body.update(overrides)
    resp = await client.post("/reports", headers=headers, json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


# =============================================================================
# Lifecycle
# =============================================================================


class TestLifecycle:
    """Submission through resolution."""

    async def test_submit_then_resolve(self, app_client, users, auth_headers, notifier):
        """Submit, then resolve straight from PENDING."""
        created = await _submit(app_client, auth_headers(users["reporter"]))
        assert created["status"] == "PENDING"
        assert created["assignedTo"] is None
        assert created["createdAt"] == created["updatedAt"]

        resp = await app_client.put(
            f"/reports/{created['id']}",
            headers=auth_headers(users["technician"]),
            json={"status": "RESOLVED"},
        )
        assert resp.status_code == 200
        resolved = resp.json()
        assert resolved["status"] == "RESOLVED"
        assert resolved["assignedTo"] is None
        assert resolved["updatedAt"] > created["createdAt"]
        assert resolved["resolvedAt"] == resolved["updatedAt"]

    async def test_reporter_update_forbidden(self, app_client, users, auth_headers):
        """Reporter status change → 403, report untouched."""
        reporter_headers = auth_headers(users["reporter"])
        created = await _submit(app_client, reporter_headers)

        resp = await app_client.put(
            f"/reports/{created['id']}",
            headers=reporter_headers,
            json={"status": "RESOLVED"},
        )
        assert resp.status_code == 403

        after = await app_client.get(f"/reports/{created['id']}", headers=reporter_headers)
        assert after.json()["status"] == "PENDING"
        assert after.json()["updatedAt"] == created["updatedAt"]

    async def test_invalid_status_leaves_report_unchanged(
        self, app_client, users, auth_headers, notifier
    ):
        """Invalid status → 400, nothing written, nothing sent."""
        created = await _submit(app_client, auth_headers(users["reporter"]))
        tech_headers = auth_headers(users["technician"])

        resp = await app_client.put(
            f"/reports/{created['id']}",
            headers=tech_headers,
            json={"status": "DONE", "assignedTo": "Crew 9"},
        )
        assert resp.status_code == 400
        assert resp.json()["fields"] == ["status"]

        after = (await app_client.get(f"/reports/{created['id']}", headers=tech_headers)).json()
        assert after["status"] == "PENDING"
        assert after["assignedTo"] is None
        assert after["updatedAt"] == created["updatedAt"]
        assert notifier.events == []

    async def test_forward_steps_then_no_way_back(self, app_client, users, auth_headers):
        """Forward steps succeed; moving back → 409."""
        created = await _submit(app_client, auth_headers(users["reporter"]))
        tech_headers = auth_headers(users["technician"])
        url = f"/reports/{created['id']}"

        step = await app_client.put(url, headers=tech_headers, json={"status": "in progress"})
        assert step.json()["status"] == "IN_PROGRESS"

        same = await app_client.put(url, headers=tech_headers, json={"status": "IN_PROGRESS"})
        assert same.status_code == 200
        assert same.json()["updatedAt"] > step.json()["updatedAt"]

        done = await app_client.put(url, headers=tech_headers, json={"status": "RESOLVED"})
        assert done.json()["status"] == "RESOLVED"

        back = await app_client.put(url, headers=tech_headers, json={"status": "IN_PROGRESS"})
        assert back.status_code == 409

    async def test_updates_are_audited(self, app_client, users, auth_headers, db_session):
        """Creation and update land in the audit log."""
        created = await _submit(app_client, auth_headers(users["reporter"]))
        await app_client.put(
            f"/reports/{created['id']}",
            headers=auth_headers(users["technician"]),
            json={"status": "IN_PROGRESS", "assignedTo": "Crew 4"},
        )

        result = await db_session.execute(
            select(AuditLog).order_by(AuditLog.created_at)
        )
        logs = list(result.scalars().all())
        assert [log.action for log in logs] == ["create", "update"]
        assert logs[1].actor_id == str(users["technician"].id)
        assert logs[1].changes["status"] == {"old": "PENDING", "new": "IN_PROGRESS"}
        assert logs[1].changes["assigned_to"] == {"old": None, "new": "Crew 4"}


# =============================================================================
# Notifications
# =============================================================================


class TestNotifications:
    """Status change notifications sent after an update commits."""

    async def test_owner_notified_of_status_change(
        self, app_client, users, auth_headers, notifier
    ):
        """Status change → event addressed to the owner."""
        created = await _submit(app_client, auth_headers(users["reporter"]))

        await app_client.put(
            f"/reports/{created['id']}",
            headers=auth_headers(users["technician"]),
            json={"status": "IN_PROGRESS"},
        )

        assert len(notifier.events) == 1
        event = notifier.events[0]
        assert str(event.report_id) == created["id"]
        assert event.previous_status == ReportStatus.PENDING
        assert event.new_status == ReportStatus.IN_PROGRESS
        assert event.owner_email == "ada@leakwatch.example.com"
        assert event.owner_name == "Ada Reporter"
        assert event.changed_by == users["technician"].id

    async def test_failed_notification_keeps_change(
        self, app_client, users, auth_headers, notifier
    ):
        """Failed notification → change still committed."""
        created = await _submit(app_client, auth_headers(users["reporter"]))
        notifier.fail = True
        tech_headers = auth_headers(users["technician"])

        resp = await app_client.put(
            f"/reports/{created['id']}",
            headers=tech_headers,
            json={"status": "RESOLVED"},
        )
        assert resp.status_code == 200
        assert len(notifier.events) == 1

        after = await app_client.get(f"/reports/{created['id']}", headers=tech_headers)
        assert after.json()["status"] == "RESOLVED"

    async def test_same_status_not_notified(self, app_client, users, auth_headers, notifier):
        """Re-asserting the current status sends nothing."""
        created = await _submit(app_client, auth_headers(users["reporter"]))
        await app_client.put(
            f"/reports/{created['id']}",
            headers=auth_headers(users["technician"]),
            json={"status": "PENDING"},
        )
        assert notifier.events == []


# =============================================================================
# Querying
# =============================================================================


class TestQuerying:
    """Filtering over a larger set."""

    async def test_severity_filter_keeps_order(
        self, app_client, users, auth_headers, seed_report
    ):
        """Three CRITICAL of ten, in storage order."""
        severities = [
            Severity.LOW,
            Severity.CRITICAL,
            Severity.MEDIUM,
            Severity.HIGH,
            Severity.CRITICAL,
            Severity.LOW,
            Severity.MEDIUM,
            Severity.CRITICAL,
            Severity.HIGH,
            Severity.LOW,
        ]
        seeded = [await seed_report(users["reporter"], severity=s) for s in severities]
        critical_newest_first = [
            str(r.id) for r in reversed(seeded) if r.severity == Severity.CRITICAL
        ]

        resp = await app_client.get(
            "/reports",
            headers=auth_headers(users["technician"]),
            params={"severity": "CRITICAL"},
        )
        data = resp.json()
        assert data["total"] == 3
        assert [item["id"] for item in data["items"]] == critical_newest_first


# =============================================================================
# Service endpoints
# =============================================================================


class TestServiceEndpoints:
    """Health and root endpoints."""

    async def test_health(self, app_client):
        """Database up, Redis unconfigured → healthy."""
        resp = await app_client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["database"] is True
        assert data["redis"] is None

    async def test_root(self, app_client):
        """Service banner."""
        resp = await app_client.get("/")
        assert resp.json()["status"] == "running"

    async def test_request_id_echoed(self, app_client):
        """X-Request-ID is echoed back."""
        resp = await app_client.get("/", headers={"X-Request-ID": "req-123"})
        assert resp.headers["x-request-id"] == "req-123"
