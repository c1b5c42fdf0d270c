"""
Notification sinks and the best-effort dispatcher.

The webhook sink is exercised against ``httpx.MockTransport`` so no
network is needed.
"""

import json
from concurrent.futures import ThreadPoolExecutor
from uuid import uuid4

import httpx
import pytest

from uxone_config.schema import NotificationConfig
from uxone_kernel.db.engine import session_scope
from uxone_kernel.domain.notification import Notification, NotificationType
from uxone_kernel.exceptions import NotificationDeliveryError
from uxone_kernel.selectors.workflow_selector import WorkflowSelector
from uxone_services.notifications import (
    LoggingSink,
    NotificationDispatcher,
    NotificationSink,
    OutboxSink,
    WebhookSink,
    build_dispatcher,
)


def _notification(recipient=None, type_=NotificationType.INFO):
    return Notification(
        recipient_user_id=recipient or uuid4(),
        title="LOG approved LR-20240101-001",
        message="Minh approved LR-20240101-001 for Logistics.",
        type=type_,
        link="/lvm/demands/LR-20240101-001",
    )


class ListSink(NotificationSink):
    name = "list"

    def __init__(self):
        self.batches = []

    def deliver(self, notifications):
        self.batches.append(list(notifications))


class BrokenSink(NotificationSink):
    name = "broken"

    def deliver(self, notifications):
        raise NotificationDeliveryError(self.name, "someone", "connection refused")


class TestDispatcher:

    def test_delivers_to_every_sink(self):
        first, second = ListSink(), ListSink()
        notification = _notification()
        assert NotificationDispatcher([first, second]).dispatch([notification]) is None
        assert first.batches == [[notification]]
        assert second.batches == [[notification]]

    def test_failing_sink_is_logged_and_skipped(self, captured_logs):
        after = ListSink()
        dispatcher = NotificationDispatcher([BrokenSink(), after])

        dispatcher.dispatch([_notification()])

        assert len(after.batches) == 1
        failure = next(r for r in captured_logs() if r["message"] == "notification_dispatch_failed")
        assert failure["sink"] == "broken"
        assert failure["count"] == 1
        assert failure["exc_code"] == "NOTIFICATION_DELIVERY_FAILED"

    def test_nothing_to_send(self):
        sink = ListSink()
        assert NotificationDispatcher([sink]).dispatch([]) is None
        assert sink.batches == []

    def test_executor_dispatch_returns_future(self):
        sink = ListSink()
        with ThreadPoolExecutor(max_workers=1) as executor:
            future = NotificationDispatcher([BrokenSink(), sink], executor=executor).dispatch(
                [_notification()]
            )
            assert future is not None
            assert future.result(timeout=10) is None
        assert len(sink.batches) == 1


class TestOutboxSink:

    def test_rows_written_per_recipient(self, session_factory, deterministic_clock):
        alice, bob = uuid4(), uuid4()
        OutboxSink(session_factory, deterministic_clock).deliver(
            [_notification(alice), _notification(bob, NotificationType.WARNING)]
        )

        with session_scope(session_factory) as s:
            selector = WorkflowSelector(s)
            alice_inbox = selector.notifications_for(alice)
            bob_inbox = selector.notifications_for(bob, unread_only=True)

        assert len(alice_inbox) == 1
        assert alice_inbox[0].link == "/lvm/demands/LR-20240101-001"
        assert [n.type for n in bob_inbox] == [NotificationType.WARNING]


class TestWebhookSink:

    def test_posts_camel_case_json(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(202)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        notification = _notification()

        WebhookSink("https://push.example.test/notify", http_client=client).deliver([notification])

        assert len(requests) == 1
        assert requests[0].method == "POST"
        assert str(requests[0].url) == "https://push.example.test/notify"
        body = json.loads(requests[0].content)
        assert body == {
            "recipientUserId": str(notification.recipient_user_id),
            "title": notification.title,
            "message": notification.message,
            "type": "info",
            "link": notification.link,
        }

    def test_server_error_raises_delivery_error(self):
        client = httpx.Client(
            transport=httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))
        )
        notification = _notification()

        with pytest.raises(NotificationDeliveryError) as exc_info:
            WebhookSink("https://push.example.test/notify", http_client=client).deliver(
                [notification]
            )
        assert exc_info.value.sink == "webhook"
        assert exc_info.value.recipient_user_id == str(notification.recipient_user_id)

    def test_transport_error_raises_delivery_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(refuse))
        with pytest.raises(NotificationDeliveryError):
            WebhookSink("https://push.example.test/notify", http_client=client).deliver(
                [_notification()]
            )


class TestBuildDispatcher:

    def test_defaults_log_and_outbox(self, session_factory):
        dispatcher = build_dispatcher(NotificationConfig(), session_factory)
        assert [s.name for s in dispatcher.sinks] == ["log", "outbox"]

    def test_webhook_enabled_by_url(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        dispatcher = build_dispatcher(
            NotificationConfig(outbox_enabled=False, webhook_url="https://push.example.test"),
            http_client=client,
        )
        assert [s.name for s in dispatcher.sinks] == ["log", "webhook"]

    def test_logging_sink_only(self, captured_logs):
        dispatcher = build_dispatcher(NotificationConfig(outbox_enabled=False))
        assert [type(s) for s in dispatcher.sinks] == [LoggingSink]
        dispatcher.dispatch([_notification()])
        assert any(r["message"] == "notification" for r in captured_logs())
