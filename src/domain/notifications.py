"""
Notification dispatcher - Fire-and-forget admin and welcome messages.

Each registration produces two independent messages. Both are handed to
a dedicated worker pool and retried with exponential backoff:

    attempt 1 fails -> wait min(max_delay, base_delay * 2**0)
    attempt 2 fails -> wait min(max_delay, base_delay * 2**1)
    attempt 3 fails -> give up, log, drop (no dead-letter queue)

Nothing here raises back to the caller of dispatch(). Delivery outcome
is communicated only through logs.
"""

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from .exceptions import NotificationFailure
from .models import WaitlistEntry
from .ports import NotificationSender, TemplateKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """One templated message bound for one recipient."""

    recipient: str
    template_kind: TemplateKind
    parameters: dict[str, Any]


@dataclass(frozen=True)
class DispatcherStatus:
    """Snapshot of the dispatcher's transport configuration."""

    configured: bool
    transport: str | None
    admin_email: str
    max_attempts: int


def backoff_delay(attempt: int, base_delay: float = 1.0, max_delay: float = 10.0) -> float:
    """Seconds to wait after the 0-based `attempt` failed."""
    return min(max_delay, base_delay * (2**attempt))


def build_admin_alert(entry: WaitlistEntry, admin_email: str) -> Notification:
    return Notification(
        recipient=admin_email,
        template_kind=TemplateKind.ADMIN_ALERT,
        parameters={
            "email": entry.email,
            "twitter": entry.twitter,
            "telegram": entry.telegram,
            "discord": entry.discord,
            "referral_code": entry.referral_code,
            "position": entry.position,
            "joined_at": entry.joined_at.isoformat(),
        },
    )


def build_welcome(entry: WaitlistEntry) -> Notification:
    return Notification(
        recipient=entry.email,
        template_kind=TemplateKind.WELCOME,
        parameters={"position": entry.position},
    )


class NotificationDispatcher:
    """
    Sends admin and welcome notifications off the request path.

    The transport is injected at construction and may be None when it
    is not configured; dispatch() is then a logged no-op. reinitialize()
    swaps the transport at runtime.
    """

    def __init__(
        self,
        sender: NotificationSender | None,
        admin_email: str,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 10.0,
        max_workers: int = 4,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.admin_email = admin_email
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._sender = sender
        self._retired: list[NotificationSender] = []
        self._sender_lock = threading.Lock()
        self._sleep = sleep
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="notifications"
        )

    def dispatch(self, entry: WaitlistEntry) -> None:
        """Schedule both notifications for a newly created entry."""
        if self._current_sender() is None:
            logger.warning(
                "Notification transport not configured, skipping notifications for %s",
                entry.email,
            )
            return

        for notification in (build_admin_alert(entry, self.admin_email), build_welcome(entry)):
            try:
                self._executor.submit(self._deliver, notification)
            except RuntimeError:
                # Executor already shut down
                logger.error(
                    "Dispatcher stopped, dropping %s notification for %s",
                    notification.template_kind.value,
                    notification.recipient,
                )

    def status(self) -> DispatcherStatus:
        sender = self._current_sender()
        return DispatcherStatus(
            configured=sender is not None,
            transport=type(sender).__name__ if sender is not None else None,
            admin_email=self.admin_email,
            max_attempts=self.max_attempts,
        )

    def reinitialize(self, sender: NotificationSender | None) -> DispatcherStatus:
        """
        Replace the transport. In-flight deliveries keep their sender.

        The replaced transport is closed by shutdown(), after those
        deliveries have finished.
        """
        with self._sender_lock:
            previous, self._sender = self._sender, sender
            if previous is not None and previous is not sender:
                self._retired.append(previous)
        status = self.status()
        logger.info(
            "Notification transport reinitialized (configured=%s, transport=%s)",
            status.configured,
            status.transport,
        )
        return status

    def send_test_messages(self, recipient: str) -> dict[str, bool]:
        """
        Send one message of each template kind synchronously, without retry.

        Used to check transport configuration. Returns success per kind.
        """
        sender = self._current_sender()
        if sender is None:
            logger.warning("Notification transport not configured, cannot send test messages")
            return {kind.value: False for kind in TemplateKind}

        results = {}
        for kind in TemplateKind:
            notification = Notification(
                recipient=recipient,
                template_kind=kind,
                parameters={
                    "email": recipient,
                    "twitter": "@testuser",
                    "telegram": "@testuser",
                    "discord": "testuser",
                    "referral_code": "TEST123",
                    "position": 42,
                    "joined_at": "",
                },
            )
            results[kind.value] = self._attempt(sender, notification)
        return results

    def shutdown(self, wait: bool = True) -> None:
        """
        Stop accepting work; optionally wait for in-flight deliveries.

        With wait=True every transport this dispatcher has held is closed
        afterwards. Without waiting they stay open for the running workers.
        """
        self._executor.shutdown(wait=wait)
        if wait:
            self._close_transports()

    def _close_transports(self) -> None:
        with self._sender_lock:
            senders = [*self._retired, self._sender]
            self._retired = []
        for sender in senders:
            close = getattr(sender, "close", None)
            if close is not None:
                close()
                logger.info("Closed notification transport %s", type(sender).__name__)

    def _current_sender(self) -> NotificationSender | None:
        with self._sender_lock:
            return self._sender

    def _deliver(self, notification: Notification) -> bool:
        """Retry loop for one notification. Runs on the worker pool."""
        sender = self._current_sender()
        if sender is None:
            logger.warning(
                "Notification transport removed, dropping %s notification",
                notification.template_kind.value,
            )
            return False

        kind = notification.template_kind.value
        for attempt in range(self.max_attempts):
            if self._attempt(sender, notification):
                logger.info(
                    "Sent %s notification to %s (attempt %d)",
                    kind,
                    notification.recipient,
                    attempt + 1,
                )
                return True

            if attempt + 1 < self.max_attempts:
                delay = backoff_delay(attempt, self.base_delay, self.max_delay)
                logger.warning(
                    "Failed to send %s notification to %s (attempt %d/%d), retrying in %.1fs",
                    kind,
                    notification.recipient,
                    attempt + 1,
                    self.max_attempts,
                    delay,
                )
                self._sleep(delay)

        failure = NotificationFailure(
            f"{kind} notification to {notification.recipient} failed "
            f"after {self.max_attempts} attempts"
        )
        logger.error("Dropping notification", exc_info=failure)
        return False

    def _attempt(self, sender: NotificationSender, notification: Notification) -> bool:
        try:
            return bool(
                sender.send(
                    notification.recipient,
                    notification.template_kind,
                    notification.parameters,
                )
            )
        except Exception:
            logger.exception(
                "Notification transport raised while sending %s",
                notification.template_kind.value,
            )
            return False
