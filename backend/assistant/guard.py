"""
One in-flight request per logical action (root cause, risk, simulation...).

A busy flag, not a queue: a second request for a busy action is refused.
"""

from collections.abc import Iterator
from contextlib import contextmanager


class ActionInProgress(Exception):
    def __init__(self, action: str):
        super().__init__(f"'{action}' is already running")
        self.action = action


class InFlightGuard:
    def __init__(self):
        self._busy: set[str] = set()

    def is_busy(self, action: str) -> bool:
        return action in self._busy

    @contextmanager
    def hold(self, action: str) -> Iterator[None]:
        if action in self._busy:
            raise ActionInProgress(action)
        self._busy.add(action)
        try:
            yield
        finally:
            self._busy.discard(action)
