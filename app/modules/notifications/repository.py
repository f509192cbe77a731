"""Notification storage.

This module provides the repository interface consumed by the delivery
engines and an in-memory implementation. The protocol-based design allows
other backends as long as they honour the atomic claim semantics of
``compare_and_set``.
"""

import copy
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol

from infrastructure.logging import get_module_logger
from modules.notifications.domain import (
    Notification,
    NotificationStatus,
    ScheduleKind,
)

logger = get_module_logger()


class NotificationRepository(Protocol):
    """Storage interface for notifications.

    Reads return detached copies: mutating a returned notification has no
    effect until it is written back with ``save`` or ``compare_and_set``.

    Methods:
        find_by_id: Load one notification
        save: Unconditional write (creation, definition bookkeeping)
        compare_and_set: Conditional write guarded by status and version
        find_by_status: All notifications in a status
        find_dispatchable: PENDING plus RETRY whose backoff elapsed
        find_due_scheduled: SCHEDULED occurrences whose due time passed
        find_due_retries: RETRY whose backoff elapsed with attempts left
        find_recurring_due: Recurrence definitions due to materialize
        find_stale_processing: PROCESSING claims not touched since cutoff
        find_occurrences: Occurrences spawned by a definition
        count_by_status: Number of notifications in a status
    """

    def find_by_id(self, notification_id: str) -> Optional[Notification]: ...

    def save(self, notification: Notification) -> Notification:
        """Persist ``notification`` and bump its version.

        Returns:
            The notification passed in, with its new version
        """
        ...

    def compare_and_set(
        self, notification: Notification, expected_status: NotificationStatus
    ) -> bool:
        """Atomically persist ``notification`` if nothing changed underneath.

        The write happens only if the stored record still has
        ``expected_status`` and the same version as ``notification``. On
        success the version of ``notification`` is bumped.

        Returns:
            True if written, False if another writer got there first
        """
        ...

    def find_by_status(self, status: NotificationStatus) -> List[Notification]: ...

    def find_dispatchable(self, now: datetime) -> List[Notification]: ...

    def find_due_scheduled(self, now: datetime) -> List[Notification]: ...

    def find_due_retries(self, now: datetime) -> List[Notification]: ...

    def find_recurring_due(self, now: datetime) -> List[Notification]: ...

    def find_stale_processing(self, cutoff: datetime) -> List[Notification]: ...

    def find_occurrences(self, definition_id: str) -> List[Notification]: ...

    def count_by_status(self, status: NotificationStatus) -> int: ...


def _is_due_retry(notification: Notification, now: datetime) -> bool:
    return (
        notification.status == NotificationStatus.RETRY
        and notification.current_attempt < notification.max_attempts
        and (notification.next_retry_time is None or notification.next_retry_time <= now)
    )


class InMemoryNotificationRepository:
    """Thread-safe in-memory NotificationRepository.

    Stores deep copies so callers cannot mutate stored state without going
    through ``save`` or ``compare_and_set``. Suitable for single-process
    deployments, development and tests.
    """

    def __init__(self) -> None:
        self._items: Dict[str, Notification] = {}
        self._lock = threading.Lock()

    def _select(self, predicate: Callable[[Notification], bool]) -> List[Notification]:
        with self._lock:
            return [copy.deepcopy(n) for n in self._items.values() if predicate(n)]

    def find_by_id(self, notification_id: str) -> Optional[Notification]:
        with self._lock:
            stored = self._items.get(notification_id)
            return copy.deepcopy(stored) if stored is not None else None

    def save(self, notification: Notification) -> Notification:
        with self._lock:
            stored = self._items.get(notification.id)
            if stored is not None:
                notification.version = stored.version + 1
            self._items[notification.id] = copy.deepcopy(notification)
        return notification

    def compare_and_set(
        self, notification: Notification, expected_status: NotificationStatus
    ) -> bool:
        with self._lock:
            stored = self._items.get(notification.id)
            if stored is None:
                return False
            if stored.status != expected_status or stored.version != notification.version:
                logger.debug(
                    "compare_and_set_rejected",
                    notification_id=notification.id,
                    expected_status=expected_status.value,
                    stored_status=stored.status.value,
                    expected_version=notification.version,
                    stored_version=stored.version,
                )
                return False
            notification.version = stored.version + 1
            self._items[notification.id] = copy.deepcopy(notification)
            return True

    def find_by_status(self, status: NotificationStatus) -> List[Notification]:
        return self._select(lambda n: n.status == status)

    def find_dispatchable(self, now: datetime) -> List[Notification]:
        return self._select(
            lambda n: n.schedule_kind != ScheduleKind.RECURRING
            and (n.status == NotificationStatus.PENDING or _is_due_retry(n, now))
        )

    def find_due_scheduled(self, now: datetime) -> List[Notification]:
        return self._select(
            lambda n: n.status == NotificationStatus.SCHEDULED
            and n.schedule_kind == ScheduleKind.SCHEDULED
            and n.due_time is not None
            and n.due_time <= now
        )

    def find_due_retries(self, now: datetime) -> List[Notification]:
        return self._select(lambda n: _is_due_retry(n, now))

    def find_recurring_due(self, now: datetime) -> List[Notification]:
        return self._select(lambda n: n.is_recurrence_due(now))

    def find_stale_processing(self, cutoff: datetime) -> List[Notification]:
        return self._select(
            lambda n: n.status == NotificationStatus.PROCESSING and n.updated_at <= cutoff
        )

    def find_occurrences(self, definition_id: str) -> List[Notification]:
        return self._select(lambda n: n.definition_id == definition_id)

    def count_by_status(self, status: NotificationStatus) -> int:
        with self._lock:
            return sum(1 for n in self._items.values() if n.status == status)

    def count(self) -> int:
        with self._lock:
            return len(self._items)
