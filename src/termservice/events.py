"""Subscriber registries — decouple session output from whoever renders it.

The session manager emits data and exit notifications; UIs, CLIs and tests
subscribe with plain callbacks. Broadcast, in registration order.
"""

from __future__ import annotations

import itertools
import logging
from typing import Callable, Generic, ParamSpec

logger = logging.getLogger(__name__)

P = ParamSpec("P")

DataCallback = Callable[[str, str], None]
"""``(session_id, batched_text)``"""

ExitCallback = Callable[[str, int | None], None]
"""``(session_id, exit_code)``"""

Unsubscribe = Callable[[], None]


class SubscriberRegistry(Generic[P]):
    """Ordered set of callbacks keyed by an opaque token.

    ``subscribe`` returns a closure that removes exactly that subscription.
    Calling it again is a no-op, even if the same callable was registered
    more than once.
    """

    def __init__(self, name: str = "") -> None:
        self._name = name
        self._subscribers: dict[int, Callable[P, None]] = {}
        self._tokens = itertools.count()

    def subscribe(self, callback: Callable[P, None]) -> Unsubscribe:
        token = next(self._tokens)
        self._subscribers[token] = callback

        def unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return unsubscribe

    def emit(self, *args: P.args, **kwargs: P.kwargs) -> None:
        """Call every subscriber. A failing subscriber does not stop the rest."""
        # Snapshot so callbacks may (un)subscribe while we iterate
        for callback in list(self._subscribers.values()):
            try:
                callback(*args, **kwargs)
            except Exception:
                logger.exception("Error in %s subscriber %r", self._name, callback)

    def __len__(self) -> int:
        return len(self._subscribers)
