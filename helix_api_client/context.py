"""
Cancellable execution context for API calls.

Every call made through :meth:`HelixClient.do` requires a
:class:`Context`.  A context can be cancelled from any thread and may
carry a deadline; derived contexts are cancelled together with their
parent.  A call blocked on the network returns as soon as its context
is done.

.. code-block:: python

    ctx = Context.background().with_timeout(5)
    users, resp = client.users.get_users(ctx, UsersOptions(logins=["foo"]))
"""

from __future__ import annotations

import threading
import time
import weakref
from typing import Callable, List, Optional

from .exceptions import ContextCancelledError, ContextError, DeadlineExceededError


class Context:
    """A cancellation signal with an optional deadline.

    Parameters
    ----------
    parent : Context, optional
        Context this one derives from.  Cancelling the parent cancels
        this context as well.
    deadline : float, optional
        Absolute ``time.monotonic()`` value after which the context is
        considered expired.
    """

    def __init__(
        self,
        parent: Optional["Context"] = None,
        deadline: Optional[float] = None,
    ) -> None:
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._children: "weakref.WeakSet[Context]" = weakref.WeakSet()
        self._callbacks: List[Callable[[], None]] = []
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline
        if parent is not None:
            parent._attach(self)

    @classmethod
    def background(cls) -> "Context":
        """Return a fresh context that is never cancelled on its own."""
        return cls()

    def with_cancel(self) -> "Context":
        return Context(parent=self)

    def with_timeout(self, seconds: float) -> "Context":
        """Derive a context that expires ``seconds`` from now."""
        return Context(parent=self, deadline=time.monotonic() + seconds)

    def _attach(self, child: "Context") -> None:
        with self._lock:
            if not self._cancelled.is_set():
                self._children.add(child)
                return
        child.cancel()

    def cancel(self) -> None:
        """Cancel this context and every context derived from it."""
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            children = list(self._children)
            self._children.clear()
            callbacks, self._callbacks = self._callbacks, []
        for child in children:
            child.cancel()
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run ``callback`` once this context is cancelled.

        The callback runs on the cancelling thread, or immediately if the
        context is already cancelled.  Returns a function that unregisters
        it.
        """
        with self._lock:
            if not self._cancelled.is_set():
                self._callbacks.append(callback)
                return lambda: self._remove_callback(callback)
        callback()
        return lambda: None

    def _remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the context is done or ``timeout`` seconds pass.

        Returns ``True`` if the context is done.
        """
        remaining = self.remaining()
        if remaining is not None and (timeout is None or remaining < timeout):
            timeout = remaining
        self._cancelled.wait(timeout)
        return self.err() is not None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or ``None`` without one."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def err(self) -> Optional[ContextError]:
        """Return the error describing why the context is done, if it is."""
        if self.cancelled:
            return ContextCancelledError()
        if self.expired:
            return DeadlineExceededError()
        return None

    def __repr__(self) -> str:
        return f"Context(cancelled={self.cancelled}, deadline={self.deadline})"
