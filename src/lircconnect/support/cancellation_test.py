import sys
import threading
import time
import unittest
from unittest.mock import Mock

import timeout_decorator
from hamcrest import assert_that, calling, instance_of, is_, is_not, none, raises

from lircconnect.support.cancellation import CancelToken, Cancelled, DeadlineExceeded, notify_on_cancel


def debug_timeout(value):
    """
    Replaces the timeout value with a very large one if the tests are running under a debugger.
    This prevents the main thread from throwing an exception and exiting when the test times out
    due to a breakpoint.
    """
    return value if sys.gettrace() is None else 100000


class CancelTokenTest(unittest.TestCase):

    def test_new_token_is_live(self):
        sut = CancelToken()
        assert_that(sut.cancelled, is_(False))
        assert_that(sut.error, is_(none()))
        assert_that(sut.cause, is_(none()))
        assert_that(sut.deadline, is_(none()))
        assert_that(sut.remaining(), is_(none()))
        sut.raise_if_cancelled()

    def test_cancel_without_cause(self):
        sut = CancelToken()
        assert_that(sut.cancel(), is_(True))
        assert_that(sut.cancelled, is_(True))
        assert_that(sut.error, is_(instance_of(Cancelled)))
        assert_that(sut.cause, is_(sut.error))
        assert_that(calling(sut.raise_if_cancelled), raises(Cancelled))

    def test_first_cause_wins(self):
        sut = CancelToken()
        first = IOError("first")
        assert_that(sut.cancel(first), is_(True))
        assert_that(sut.cancel(ValueError("second")), is_(False))
        assert_that(sut.cause, is_(first))

    def test_cancelling_parent_cancels_child_with_parent_cause(self):
        parent = CancelToken()
        child = CancelToken(parent)
        cause = IOError("gone")
        parent.cancel(cause)
        assert_that(child.cancelled, is_(True))
        assert_that(child.cause, is_(cause))

    def test_cancelling_child_leaves_parent_live(self):
        parent = CancelToken()
        child = CancelToken(parent)
        child.cancel()
        assert_that(parent.cancelled, is_(False))
        assert_that(parent._callbacks, is_([]))

    def test_child_of_cancelled_parent_is_cancelled(self):
        parent = CancelToken()
        parent.cancel()
        child = CancelToken(parent)
        assert_that(child.cancelled, is_(True))

    def test_callbacks(self):
        sut = CancelToken()
        callback = Mock()
        removed = Mock()
        sut.add_callback(callback)
        sut.add_callback(removed)
        sut.remove_callback(removed)
        sut.cancel()
        sut.cancel()
        callback.assert_called_once_with(sut)
        removed.assert_not_called()

    def test_callback_added_after_cancel_is_called_immediately(self):
        sut = CancelToken()
        sut.cancel()
        callback = Mock()
        sut.add_callback(callback)
        callback.assert_called_once_with(sut)

    def test_context_manager_cancels_on_exit(self):
        with CancelToken() as sut:
            assert_that(sut.cancelled, is_(False))
        assert_that(sut.cancelled, is_(True))

    @timeout_decorator.timeout(debug_timeout(2))
    def test_timeout_expires_with_deadline_exceeded(self):
        sut = CancelToken(timeout=0.05)
        assert_that(sut.wait(1), is_(True))
        assert_that(sut.error, is_(instance_of(DeadlineExceeded)))
        assert_that(calling(sut.raise_if_cancelled), raises(DeadlineExceeded))

    def test_child_deadline_is_never_later_than_parent(self):
        parent = CancelToken(timeout=1)
        child = CancelToken(parent, timeout=60)
        assert_that(child.deadline, is_(parent.deadline))
        assert_that(child._timer, is_(none()))
        sooner = CancelToken(parent, timeout=0.5)
        assert_that(sooner.deadline < parent.deadline, is_(True))
        parent.cancel()
        assert_that(sooner.cancelled, is_(True))

    @timeout_decorator.timeout(debug_timeout(2))
    def test_parent_deadline_expires_child(self):
        parent = CancelToken(timeout=0.05)
        child = CancelToken(parent, timeout=60)
        assert_that(child.wait(1), is_(True))
        assert_that(child.error, is_(instance_of(DeadlineExceeded)))

    def test_remaining(self):
        sut = CancelToken(timeout=60)
        remaining = sut.remaining()
        assert_that(remaining > 50 and remaining <= 60, is_(True))
        sut.cancel()

    def test_cancel_stops_timer(self):
        sut = CancelToken(timeout=60)
        timer = sut._timer
        sut.cancel()
        timer.join(1)
        assert_that(timer.is_alive(), is_(False))


class NotifyOnCancelTest(unittest.TestCase):

    @timeout_decorator.timeout(debug_timeout(2))
    def test_cancel_wakes_waiter(self):
        condition = threading.Condition()
        token = CancelToken()
        woken = []

        def wait():
            with notify_on_cancel(token, condition):
                with condition:
                    woken.append(condition.wait_for(lambda: token.cancelled, 5))

        thread = threading.Thread(target=wait)
        thread.start()
        time.sleep(0.05)
        token.cancel()
        thread.join()
        assert_that(woken, is_([True]))
        assert_that(token._callbacks, is_([]))

    def test_no_token(self):
        condition = threading.Condition()
        with notify_on_cancel(None, condition):
            pass

    def test_callback_removed_on_exit(self):
        token = CancelToken()
        with notify_on_cancel(token, threading.Condition()):
            assert_that(token._callbacks, is_not([]))
        assert_that(token._callbacks, is_([]))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
