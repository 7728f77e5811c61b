"""
Tests for settlement notifications.
"""
import json
from decimal import Decimal
import httpx
import pytest
from groupledger.core.config import settings
from groupledger.core.exceptions import NotificationDeliveryError
from groupledger.services.notifier import (
    LoggingNotifier,
    SettlementCompletedEvent,
    WebhookNotifier,
    dispatch,
    get_notifier,
)
from groupledger.tests.conftest import FailingNotifier, RecordingNotifier

WEBHOOK_URL = "http://notify.test/settlements"


def make_event():
    return SettlementCompletedEvent(
        group_id=1,
        from_member=2,
        to_member=1,
        amount=Decimal("10.00"),
        currency="USD",
        settlement_expense_id=7,
        message='Bob paid you USD 10.00 in "Trip"',
    )


def webhook(handler):
    return WebhookNotifier(WEBHOOK_URL, client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_webhook_posts_event_as_json():
    """Test the webhook receives the serialized event."""
    received = []

    def handler(request):
        received.append((str(request.url), json.loads(request.content)))
        return httpx.Response(202)

    webhook(handler).notify(make_event())

    url, body = received[0]
    assert url == WEBHOOK_URL
    assert body["event"] == "settlement_completed"
    assert body["to_member"] == 1
    assert body["amount"] == "10.00"
    assert body["settlement_expense_id"] == 7


def test_webhook_error_status():
    """Test a failing webhook response becomes a delivery error."""
    notifier = webhook(lambda request: httpx.Response(500))
    with pytest.raises(NotificationDeliveryError) as exc_info:
        notifier.notify(make_event())
    assert exc_info.value.details["status_code"] == 500


def test_webhook_unreachable():
    """Test a connection failure becomes a delivery error."""
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NotificationDeliveryError):
        webhook(handler).notify(make_event())


def test_dispatch_returns_warning_on_failure():
    """Test failed delivery is reported, not raised."""
    warning = dispatch(FailingNotifier(), make_event())
    assert warning.startswith("Settlement recorded")
    assert "delivery service down" in warning


def test_dispatch_success_and_no_notifier():
    """Test successful or skipped delivery gives no warning."""
    recorder = RecordingNotifier()
    assert dispatch(recorder, make_event()) is None
    assert len(recorder.events) == 1
    assert dispatch(None, make_event()) is None


def test_logging_notifier(caplog):
    """Test the fallback notifier logs the message."""
    with caplog.at_level("INFO", logger="groupledger.services.notifier"):
        LoggingNotifier().notify(make_event())
    assert "Bob paid you USD 10.00" in caplog.text


def test_get_notifier_follows_settings(monkeypatch):
    """Test the configured webhook URL selects the notifier."""
    monkeypatch.setattr(settings, "NOTIFIER_WEBHOOK_URL", "")
    assert isinstance(get_notifier(), LoggingNotifier)

    monkeypatch.setattr(settings, "NOTIFIER_WEBHOOK_URL", WEBHOOK_URL)
    monkeypatch.setattr(settings, "NOTIFIER_TIMEOUT", 2.5)
    notifier = get_notifier()
    assert isinstance(notifier, WebhookNotifier)
    assert notifier.url == WEBHOOK_URL
    assert notifier.timeout == 2.5
