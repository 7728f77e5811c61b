"""
Settlement-completed notifications.

Delivery is fire-and-forget from the ledger's point of view: it happens after
the settlement transaction commits, and a failed delivery only produces a
logged warning.
"""
import logging
from decimal import Decimal
from typing import Optional
import httpx
from pydantic import BaseModel
from groupledger.core.config import settings
from groupledger.core.exceptions import NotificationDeliveryError

logger = logging.getLogger(__name__)


class SettlementCompletedEvent(BaseModel):
    """Payload handed to the notifier for the payee."""
    event: str = "settlement_completed"
    group_id: int
    from_member: int
    to_member: int
    amount: Decimal
    currency: str
    settlement_expense_id: int
    message: str = ""


class Notifier:
    """Base notifier. Subclasses raise NotificationDeliveryError on failure."""

    def notify(self, event: SettlementCompletedEvent) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Writes events to the log; used when no webhook is configured."""

    def notify(self, event: SettlementCompletedEvent) -> None:
        logger.info(f"Notify member {event.to_member}: {event.message}")


class WebhookNotifier(Notifier):
    """POSTs events as JSON to a delivery service."""

    def __init__(self, url: str, timeout: float = 5.0, client: Optional[httpx.Client] = None):
        self.url = url
        self.timeout = timeout
        self.client = client

    def notify(self, event: SettlementCompletedEvent) -> None:
        payload = event.model_dump(mode="json")
        try:
            if self.client is not None:
                response = self.client.post(self.url, json=payload, timeout=self.timeout)
            else:
                response = httpx.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NotificationDeliveryError(
                f"Notification webhook returned {e.response.status_code}",
                status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise NotificationDeliveryError(f"Notification webhook unreachable: {e}") from e


def dispatch(notifier: Optional[Notifier], event: SettlementCompletedEvent) -> Optional[str]:
    """Deliver an event. Returns a warning message instead of raising on delivery failure."""
    if notifier is None:
        return None
    try:
        notifier.notify(event)
    except NotificationDeliveryError as e:
        logger.warning(
            f"Settlement {event.settlement_expense_id} recorded but notification failed: {e.message}"
        )
        return f"Settlement recorded, but the payee could not be notified: {e.message}"
    return None


def get_notifier() -> Notifier:
    """Dependency returning the configured notifier."""
    if settings.NOTIFIER_WEBHOOK_URL:
        return WebhookNotifier(settings.NOTIFIER_WEBHOOK_URL, timeout=settings.NOTIFIER_TIMEOUT)
    return LoggingNotifier()
