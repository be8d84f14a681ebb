"""Shared plumbing for the booking services.

Services:
- Depend only on interfaces (stores, notifier, gateway)
- Validate domain invariants before mutating anything
- Perform orchestration inside one store transaction
- Return ``Ok(value)`` or ``Err(domain_error)``
"""

import functools
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any, ParamSpec, TypeVar

from django.utils import timezone

from bookings.config import BookingConfig
from bookings.domain.errors import DomainError
from bookings.domain.result import Err, Ok, Result
from bookings.stores.interfaces import LedgerStore, Notifier, SessionStore

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def returns_result(method: Callable[P, T]) -> Callable[P, Result[T]]:
    """Turn a method that raises ``DomainError`` into one that returns ``Err``."""

    @functools.wraps(method)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T]:
        try:
            return Ok(method(*args, **kwargs))
        except DomainError as error:
            logger.info("%s rejected: %s", method.__qualname__, error)
            return Err(error)

    return wrapper


class Outbox:
    """Notifications queued during a transaction, sent after it commits."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str, dict[str, Any]]] = []

    def add(self, user_id: str, kind: str, **payload: Any) -> None:
        self.messages.append((user_id, kind, payload))

    @property
    def recipients(self) -> tuple[str, ...]:
        return tuple(user_id for user_id, _, _ in self.messages)


class BaseService:
    def __init__(
        self,
        sessions: SessionStore,
        ledger: LedgerStore,
        notifier: Notifier,
        config: BookingConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._sessions = sessions
        self._ledger = ledger
        self._notifier = notifier
        self._config = config or BookingConfig()
        self._clock = clock or timezone.now

    def now(self) -> datetime:
        return self._clock().astimezone(self._config.time_zone)

    @contextmanager
    def transaction(self) -> Iterator[Outbox]:
        """Run one unit of work across both stores; notify only on commit."""
        outbox = Outbox()
        with self._sessions.atomic(), self._ledger.atomic():
            yield outbox
        self._dispatch(outbox)

    def _dispatch(self, outbox: Outbox) -> None:
        for user_id, kind, payload in outbox.messages:
            try:
                self._notifier.send(user_id, kind, payload)
            except Exception:
                logger.exception("notification_failed user=%s kind=%s", user_id, kind)
