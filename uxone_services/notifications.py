"""
uxone_services.notifications -- Best-effort notification delivery.

Responsibility:
    Deliver notifications built by ``uxone_kernel.domain.notification`` to
    one or more sinks: the database outbox (the in-app inbox), an HTTP
    webhook (the mobile companion app) and the log.

Architecture position:
    Services layer.  Called by ``DecisionHandler`` and ``CommentService``
    only AFTER their business transaction has committed.

Invariants enforced:
    - A failing sink never affects the committed business state and never
      prevents the other sinks from running.  Failures are logged with
      ``exc_info`` and swallowed by the dispatcher.
    - Sinks raise ``NotificationDeliveryError`` (or any other exception);
      only the dispatcher decides to swallow.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from concurrent.futures import Executor, Future, ThreadPoolExecutor

import httpx
from sqlalchemy.orm import Session, sessionmaker

from uxone_config.schema import NotificationConfig
from uxone_kernel.db.engine import session_scope
from uxone_kernel.domain.clock import Clock, SystemClock
from uxone_kernel.domain.notification import Notification
from uxone_kernel.exceptions import NotificationDeliveryError
from uxone_kernel.logging_config import get_logger
from uxone_kernel.models.notification import NotificationModel

logger = get_logger("services.notifications")


class NotificationSink(ABC):
    """Destination for notifications."""

    name: str = "sink"

    @abstractmethod
    def deliver(self, notifications: Sequence[Notification]) -> None:
        """Deliver every notification or raise."""


class OutboxSink(NotificationSink):
    """Writes one ``notifications`` row per recipient in its own transaction."""

    name = "outbox"

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    def deliver(self, notifications: Sequence[Notification]) -> None:
        if not notifications:
            return
        created_at = self._clock.now_utc()
        with session_scope(self._session_factory) as session:
            session.add_all(
                NotificationModel.from_dto(n, created_at) for n in notifications
            )
        logger.debug("notifications_stored", extra={"count": len(notifications)})


class WebhookSink(NotificationSink):
    """POSTs each notification as JSON to a webhook URL."""

    name = "webhook"

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 5.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._url = url
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None

    def deliver(self, notifications: Sequence[Notification]) -> None:
        for notification in notifications:
            try:
                response = self._client.post(self._url, json=notification.to_json())
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise NotificationDeliveryError(
                    self.name, str(notification.recipient_user_id), str(exc),
                ) from exc

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class LoggingSink(NotificationSink):
    name = "log"

    def deliver(self, notifications: Sequence[Notification]) -> None:
        for notification in notifications:
            logger.info(
                "notification",
                extra={
                    "recipient_user_id": str(notification.recipient_user_id),
                    "title": notification.title,
                    "notification_type": notification.type.value,
                    "link": notification.link,
                },
            )


class NotificationDispatcher:
    """
    Fans notifications out to every sink, best-effort.

    With an ``executor`` dispatch is fire-and-forget and returns the
    ``Future``; without one it runs inline and returns None.  Either way
    the caller never sees a delivery exception.
    """

    def __init__(
        self,
        sinks: Sequence[NotificationSink],
        executor: Executor | None = None,
    ) -> None:
        self._sinks = tuple(sinks)
        self._executor = executor

    @property
    def sinks(self) -> tuple[NotificationSink, ...]:
        return self._sinks

    def dispatch(self, notifications: Sequence[Notification]) -> Future | None:
        notifications = list(notifications)
        if not notifications:
            return None
        if self._executor is not None:
            return self._executor.submit(self._deliver_all, notifications)
        self._deliver_all(notifications)
        return None

    def _deliver_all(self, notifications: list[Notification]) -> None:
        for sink in self._sinks:
            try:
                sink.deliver(notifications)
            except Exception:
                logger.error(
                    "notification_dispatch_failed",
                    exc_info=True,
                    extra={"sink": sink.name, "count": len(notifications)},
                )


def build_dispatcher(
    config: NotificationConfig,
    session_factory: sessionmaker[Session] | None = None,
    clock: Clock | None = None,
    http_client: httpx.Client | None = None,
    executor: Executor | None = None,
) -> NotificationDispatcher:
    """Assemble the sinks enabled in ``config``."""
    sinks: list[NotificationSink] = [LoggingSink()]
    if config.outbox_enabled:
        sinks.append(OutboxSink(session_factory, clock))
    if config.webhook_url:
        sinks.append(WebhookSink(
            config.webhook_url,
            timeout=config.webhook_timeout_seconds,
            http_client=http_client,
        ))
    if executor is None and config.async_dispatch:
        executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="uxone-notify")
    return NotificationDispatcher(sinks, executor=executor)
