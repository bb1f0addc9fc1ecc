"""Process-wide publish/subscribe dispatcher between UI and controller.

Subscribers register a handler together with a `ThreadMode`. UI-mode handlers
run on the bound UI executor (the Textual loop); background handlers run on a
single worker thread shared by every background subscriber, which is also the
thread the controller mutates its state on.

Delivery is synchronous when the publisher already runs on the subscriber's
executor and queued otherwise. Each executor is FIFO, so events published
from one thread reach a subscriber in publication order.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, TypeVar

from .executors import Executor, SerialExecutor

T = TypeVar("T")

logger = logging.getLogger(__name__)

BACKGROUND_THREAD_NAME = "simple-player-bus"

Handler = Callable[[Any], None]


class ThreadMode(Enum):
    """Thread a subscriber wants its events delivered on."""

    UI = "ui"
    BACKGROUND = "background"


@dataclass(frozen=True)
class _Subscription:
    handler: Handler
    event_types: tuple[type, ...] | None
    thread_mode: ThreadMode

    def accepts(self, event: object) -> bool:
        return self.event_types is None or isinstance(event, self.event_types)


class EventBus:
    """Typed event dispatcher with per-subscriber thread selection."""

    def __init__(
        self,
        *,
        background: SerialExecutor | None = None,
        ui_executor: Executor | None = None,
    ) -> None:
        self._background = background or SerialExecutor(BACKGROUND_THREAD_NAME)
        self._ui_executor = ui_executor
        self._lock = threading.Lock()
        self._subscriptions: dict[Handler, _Subscription] = {}

    def bind_ui_executor(self, executor: Executor | None) -> None:
        """Attach (or detach) the executor that owns the UI thread."""
        self._ui_executor = executor

    def subscribe(
        self,
        handler: Handler,
        *,
        event_types: tuple[type, ...] | None = None,
        thread_mode: ThreadMode = ThreadMode.BACKGROUND,
    ) -> None:
        """Register `handler`; a second registration of the same handler is a no-op."""
        subscription = _Subscription(handler, event_types, thread_mode)
        with self._lock:
            if handler in self._subscriptions:
                logger.debug("Handler already subscribed: %r", handler)
                return
            self._subscriptions[handler] = subscription

    def unsubscribe(self, handler: Handler) -> None:
        with self._lock:
            self._subscriptions.pop(handler, None)

    def is_subscribed(self, handler: Handler) -> bool:
        with self._lock:
            return handler in self._subscriptions

    def publish(self, event: object) -> None:
        """Route `event` to every matching subscriber without blocking."""
        with self._lock:
            targets = [
                sub for sub in self._subscriptions.values() if sub.accepts(event)
            ]
        if not targets:
            logger.debug("No subscribers for %s", type(event).__name__)
            return
        for subscription in targets:
            self._dispatch(subscription, event)

    def run_in_background(self, func: Callable[..., T], /, *args: Any) -> Future[T]:
        """Queue `func` on the background worker shared with background handlers."""
        return self._background.submit(func, *args)

    def is_background_thread(self) -> bool:
        return self._background.is_current()

    def flush(self, timeout: float = 2.0) -> None:
        """Block until work queued before this call has been delivered."""
        if not self._background.closed and not self._background.is_current():
            self._background.submit(_noop).result(timeout)
        ui_executor = self._ui_executor
        if ui_executor is not None and not ui_executor.is_current():
            ui_executor.submit(_noop).result(timeout)

    def close(self) -> None:
        """Drop all subscriptions and stop the background worker."""
        with self._lock:
            self._subscriptions.clear()
        self._background.shutdown(wait=True)

    def _dispatch(self, subscription: _Subscription, event: object) -> None:
        if subscription.thread_mode is ThreadMode.UI:
            executor: Executor | None = self._ui_executor
        else:
            executor = self._background
        if executor is None or executor.is_current():
            self._deliver(subscription, event)
            return
        try:
            executor.submit(self._deliver, subscription, event)
        except RuntimeError as exc:
            logger.debug(
                "Dropping %s for %r: %s", type(event).__name__, subscription.handler, exc
            )

    def _deliver(self, subscription: _Subscription, event: object) -> None:
        with self._lock:
            active = self._subscriptions.get(subscription.handler) is subscription
        if not active:
            return
        try:
            subscription.handler(event)
        except Exception:
            logger.exception(
                "Event handler %r failed for %s",
                subscription.handler,
                type(event).__name__,
            )


def _noop() -> None:
    return None


_default_bus: EventBus | None = None
_default_lock = threading.Lock()


def default_bus() -> EventBus:
    """Return the lazily created process-wide bus."""
    global _default_bus
    with _default_lock:
        if _default_bus is None:
            _default_bus = EventBus()
        return _default_bus
