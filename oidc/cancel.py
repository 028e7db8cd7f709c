"""Cancellation token shared between the flow and its receiver thread.

A child token is cancelled when its parent is, so cancelling the caller's
token also stops anything started under it.
"""

import threading
from typing import Optional

from oidc.errors import FlowCancelledError


class CancelToken:
    """Thread-safe, one-way cancellation flag."""

    def __init__(self, parent: Optional["CancelToken"] = None):
        self._event = threading.Event()
        self._parent = parent
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    @property
    def reason(self) -> Optional[str]:
        if self._event.is_set():
            return self._reason
        if self._parent is not None:
            return self._parent.reason
        return None

    def child(self) -> "CancelToken":
        return CancelToken(parent=self)

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise FlowCancelledError(f"login cancelled: {self.reason}")
