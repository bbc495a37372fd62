"""
Cancellation context passed through every collaborator call of a build.
"""

import threading
import time
from typing import Optional

from sui_ptb.errors import BuildCancelled


class Context:
    """Deadline plus cancel flag for one build call.

    Child contexts share the parent's cancel flag and never extend its deadline.
    """

    def __init__(self, deadline: Optional[float] = None, _event: Optional[threading.Event] = None):
        self.deadline = deadline
        self._event = _event or threading.Event()

    @classmethod
    def background(cls) -> "Context":
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> "Context":
        return cls(deadline=time.monotonic() + seconds)

    def child(self, seconds: Optional[float] = None) -> "Context":
        deadline = self.deadline
        if seconds is not None:
            candidate = time.monotonic() + seconds
            deadline = candidate if deadline is None else min(deadline, candidate)
        return Context(deadline=deadline, _event=self._event)

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is no deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self, where: str = "") -> None:
        """Raise BuildCancelled if the context is done."""
        suffix = f" before {where}" if where else ""
        if self._event.is_set():
            raise BuildCancelled(f"build cancelled{suffix}")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise BuildCancelled(f"build deadline exceeded{suffix}")
