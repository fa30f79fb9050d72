"""
Status change notifications.

When a report's status changes the owner is told by e-mail through an
external relay (EmailJS). Delivery is fire-and-forget: it runs after the
status change is committed, is bounded by a timeout, and its failures are
logged and never reach the caller.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

import httpx

from leakwatch.config import get_logger, get_settings
from leakwatch.services.lifecycle import StatusChangeEvent

logger = get_logger(__name__)

# Human-readable status labels used in messages
STATUS_LABELS: dict[str, str] = {
    "PENDING": "Pending",
    "IN_PROGRESS": "In Progress",
    "RESOLVED": "Resolved",
}


class NotificationError(Exception):
    """
    Raised when a notification could not be delivered.

    Attributes:
        status_code: HTTP status code from the relay, if available
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def template_params(event: StatusChangeEvent) -> dict[str, str]:
    """Template parameters for a status change e-mail."""
    return {
        "to_name": event.owner_name or "User",
        "to_email": event.owner_email,
        "report_id": str(event.report_id),
        "report_status": event.new_status.value,
        "report_status_label": STATUS_LABELS.get(event.new_status.value, event.new_status.value),
        "previous_status": event.previous_status.value,
    }


class NotificationDispatcher(ABC):
    """Delivers status change events to report owners."""

    @property
    @abstractmethod
    def channel(self) -> str:
        """Return the delivery channel name (e.g., 'email')."""
        ...

    @abstractmethod
    async def send(self, event: StatusChangeEvent) -> None:
        """
        Deliver one event.

        Raises:
            NotificationError: If delivery failed.
        """
        ...

    async def close(self) -> None:  # noqa: B027
        """Release resources (e.g., HTTP clients). Default: nothing to release."""
        pass


class LogOnlyDispatcher(NotificationDispatcher):
    """Used when no e-mail relay is configured: records the event in the log."""

    @property
    def channel(self) -> str:
        return "log"

    async def send(self, event: StatusChangeEvent) -> None:
        logger.info(
            "Status change notification not sent (no relay configured)",
            report_id=str(event.report_id),
            new_status=event.new_status.value,
        )


class EmailJSDispatcher(NotificationDispatcher):
    """
    EmailJS REST API dispatcher.

    Sends the report owner's template e-mail via
    POST {api_url} with service, template and key identifiers.
    """

    def __init__(
        self,
        service_id: str,
        template_id: str,
        public_key: str,
        *,
        private_key: str | None = None,
        api_url: str = "https://api.emailjs.com/api/v1.0/email/send",
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._service_id = service_id
        self._template_id = template_id
        self._public_key = public_key
        self._private_key = private_key
        self._api_url = api_url
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    @property
    def channel(self) -> str:
        return "email"

    def build_payload(self, event: StatusChangeEvent) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "service_id": self._service_id,
            "template_id": self._template_id,
            "user_id": self._public_key,
            "template_params": template_params(event),
        }
        if self._private_key:
            payload["accessToken"] = self._private_key
        return payload

    async def send(self, event: StatusChangeEvent) -> None:
        try:
            response = await self._client.post(
                self._api_url,
                json=self.build_payload(event),
            )
        except httpx.TimeoutException as e:
            raise NotificationError("E-mail relay timed out") from e
        except httpx.RequestError as e:
            raise NotificationError(f"Failed to reach e-mail relay: {e}") from e

        if response.status_code >= 400:
            raise NotificationError(
                f"E-mail relay rejected message: {response.text}",
                status_code=response.status_code,
            )

        logger.info(
            "Status change e-mail sent",
            report_id=str(event.report_id),
            new_status=event.new_status.value,
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()


# Process-wide dispatcher, created on first use and closed at shutdown
_dispatcher: NotificationDispatcher | None = None


def get_dispatcher() -> NotificationDispatcher:
    """
    Get or create the configured dispatcher.

    Returns an EmailJSDispatcher when EmailJS is configured, otherwise
    a LogOnlyDispatcher.
    """
    global _dispatcher

    if _dispatcher is not None:
        return _dispatcher

    settings = get_settings()
    if settings.email_notifications_enabled:
        _dispatcher = EmailJSDispatcher(
            service_id=settings.emailjs_service_id,
            template_id=settings.emailjs_template_id,
            public_key=settings.emailjs_public_key,
            private_key=(
                settings.emailjs_private_key.get_secret_value()
                if settings.emailjs_private_key
                else None
            ),
            api_url=settings.emailjs_api_url,
            timeout=settings.notification_timeout_seconds,
        )
    else:
        _dispatcher = LogOnlyDispatcher()

    logger.info("Created notification dispatcher", channel=_dispatcher.channel)
    return _dispatcher


async def close_dispatcher() -> None:
    """Close the process-wide dispatcher, if one was created."""
    global _dispatcher

    if _dispatcher is not None:
        await _dispatcher.close()
        _dispatcher = None


async def dispatch_status_change(
    dispatcher: NotificationDispatcher,
    event: StatusChangeEvent,
    *,
    timeout: float | None = None,
) -> bool:
    """
    Deliver a status change event without ever raising.

    Args:
        dispatcher: Where to send the event
        event: The committed status change
        timeout: Overall bound in seconds (defaults to settings)

    Returns:
        True if delivered, False if delivery failed or timed out.
    """
    if timeout is None:
        timeout = get_settings().notification_timeout_seconds

    try:
        await asyncio.wait_for(dispatcher.send(event), timeout=timeout)
        return True
    except TimeoutError:
        logger.error(
            "Status change notification timed out",
            report_id=str(event.report_id),
            channel=dispatcher.channel,
            timeout_seconds=timeout,
        )
    except NotificationError as e:
        logger.error(
            "Status change notification failed",
            report_id=str(event.report_id),
            channel=dispatcher.channel,
            status_code=e.status_code,
            error=e.message,
        )
    except Exception as e:
        logger.exception(
            "Unexpected error dispatching status change notification",
            report_id=str(event.report_id),
            channel=dispatcher.channel,
            error=str(e),
        )
    return False
