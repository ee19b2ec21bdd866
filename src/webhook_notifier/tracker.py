from __future__ import annotations

import threading
from typing import List, Optional, Set

from .handle import RequestHandle


class RequestTracker:
    """Keeps in-flight requests referenced until they reach a terminal state.

    Safe to call from any thread. Removing a handle that is not tracked is a
    no-op so a late completion after a failure does nothing.
    """

    def __init__(self) -> None:
        self._handles: Set[RequestHandle] = set()
        self._condition = threading.Condition()

    def add(self, handle: RequestHandle) -> None:
        with self._condition:
            self._handles.add(handle)

    def remove(self, handle: RequestHandle) -> bool:
        with self._condition:
            if handle not in self._handles:
                return False
            self._handles.discard(handle)
            if not self._handles:
                self._condition.notify_all()
            return True

    def snapshot(self) -> List[RequestHandle]:
        with self._condition:
            return list(self._handles)

    def wait_until_empty(self, timeout: Optional[float] = None) -> bool:
        with self._condition:
            return self._condition.wait_for(lambda: not self._handles, timeout)

    def __len__(self) -> int:
        with self._condition:
            return len(self._handles)

    def __contains__(self, handle: object) -> bool:
        with self._condition:
            return handle in self._handles
