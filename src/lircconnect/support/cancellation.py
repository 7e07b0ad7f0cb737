"""
Cancellation tokens shared between the threads of a connection and the callers that use it.

A token is cancelled at most once. The first cancellation wins and fixes both the error that
describes how the token ended (Cancelled, or DeadlineExceeded when its deadline passed) and the
cause, an optional exception supplied by whoever cancelled it. Later cancellations are ignored,
so every reader sees the same snapshot.

Tokens form a tree: cancelling a parent cancels its children with the parent's error and cause,
while cancelling a child leaves the parent running. A child's deadline is never later than its
parent's.
"""
import threading
import time
from contextlib import contextmanager


class Cancelled(Exception):
    """ Raised by a blocking operation that was abandoned because its token was cancelled. """


class DeadlineExceeded(Cancelled):
    """ Raised by a blocking operation whose token deadline passed before it completed. """


class CancelToken:
    """
    :param parent: an optional token whose cancellation propagates to this one
    :param timeout: optional number of seconds after which this token cancels itself
        with DeadlineExceeded
    """

    def __init__(self, parent: 'CancelToken'=None, timeout=None):
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._error = None
        self._cause = None
        self._callbacks = []
        self._timer = None
        self._parent = parent
        self.deadline = parent.deadline if parent is not None else None
        if timeout is not None:
            deadline = time.monotonic() + timeout
            if self.deadline is None or deadline < self.deadline:
                self.deadline = deadline
                self._timer = threading.Timer(max(timeout, 0), self._expire)
                self._timer.daemon = True
                self._timer.start()
        if parent is not None:
            parent.add_callback(self._parent_cancelled)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.cancel()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def error(self) -> Cancelled:
        """ the error describing how this token ended, or None while it is live. """
        return self._error

    @property
    def cause(self) -> BaseException:
        """
        the exception given when this token was cancelled. When no cause was given
        this is the same as error. None while the token is live.
        """
        return self._cause

    def remaining(self):
        """ seconds left until the deadline, or None when there is no deadline. """
        if self.deadline is None:
            return None
        return max(self.deadline - time.monotonic(), 0)

    def wait(self, timeout=None) -> bool:
        """ blocks until this token is cancelled or the timeout passes.
        :return: True if the token was cancelled
        """
        return self._event.wait(timeout)

    def cancel(self, cause: BaseException=None) -> bool:
        """
        Cancels this token and all its children.
        :param cause: the reason for the cancellation. The first cause recorded is kept.
        :return: True if this call cancelled the token, False if it was already cancelled.
        """
        return self._finish(Cancelled("operation was cancelled"), cause)

    def raise_if_cancelled(self):
        error = self._error
        if error is not None:
            raise type(error)(*error.args)

    def add_callback(self, fn):
        """
        Registers a callable that is invoked with this token when it is cancelled.
        If the token is already cancelled the callable is invoked immediately on the calling thread.
        """
        with self._lock:
            if self._error is None:
                self._callbacks.append(fn)
                return
        fn(self)

    def remove_callback(self, fn):
        with self._lock:
            if fn in self._callbacks:
                self._callbacks.remove(fn)

    def _expire(self):
        self._finish(DeadlineExceeded("deadline exceeded"), None)

    def _parent_cancelled(self, parent):
        self._finish(parent.error, parent.cause)

    def _finish(self, error, cause):
        with self._lock:
            if self._error is not None:
                return False
            self._error = error
            self._cause = cause if cause is not None else error
            callbacks, self._callbacks = self._callbacks, []
        self._event.set()
        if self._timer is not None:
            self._timer.cancel()
        if self._parent is not None:
            self._parent.remove_callback(self._parent_cancelled)
        for fn in callbacks:
            fn(self)
        return True


@contextmanager
def notify_on_cancel(token: CancelToken, condition: threading.Condition):
    """
    Wakes all threads waiting on the condition if the token is cancelled while the block runs.
    The condition must be based on a reentrant lock when the block holds it while entering.
    """
    if token is None:
        yield
        return

    def wake(_):
        with condition:
            condition.notify_all()

    token.add_callback(wake)
    try:
        yield
    finally:
        token.remove_callback(wake)
