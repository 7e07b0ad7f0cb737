import threading
import unittest
from unittest.mock import Mock

import timeout_decorator
from hamcrest import assert_that, calling, instance_of, is_, none, raises

from lircconnect.commands import Version
from lircconnect.connector.base import ConnectionClosedError, ConnectionLostError
from lircconnect.protocol.asynchronous import ConnectionLoop, FutureReply, ReadLoop
from lircconnect.protocol.messages import CommandReply
from lircconnect.support.cancellation import CancelToken
from lircconnect.support.cancellation_test import debug_timeout


class FutureReplyTest(unittest.TestCase):

    def test_resolve_with_reply(self):
        sut = FutureReply(Version())
        reply = CommandReply("VERSION")
        assert_that(sut.resolve(reply), is_(True))
        assert_that(sut.result(0), is_(reply))
        assert_that(sut.command, is_(Version()))

    def test_resolve_with_exception(self):
        sut = FutureReply(Version())
        assert_that(sut.resolve(ConnectionClosedError("closed")), is_(True))
        assert_that(calling(sut.result).with_args(0), raises(ConnectionClosedError))

    def test_first_resolution_wins(self):
        sut = FutureReply(Version())
        reply = CommandReply("VERSION")
        sut.resolve(reply)
        assert_that(sut.resolve(ConnectionClosedError()), is_(False))
        assert_that(sut.result(0), is_(reply))


class CountingLoop(ConnectionLoop):
    def __init__(self, token, log, failure_at=None):
        super().__init__(token, log)
        self.failure_at = failure_at
        self.count = 0
        self.shut_down = threading.Event()

    def loop(self):
        self.count += 1
        if self.count == self.failure_at:
            raise ValueError("failed at %d" % self.count)
        self.token.wait(0.01)

    def shutdown(self):
        self.shut_down.set()


class ConnectionLoopTest(unittest.TestCase):

    def test_abstract_loop(self):
        assert_that(calling(ConnectionLoop(CancelToken()).loop), raises(NotImplementedError))

    @timeout_decorator.timeout(debug_timeout(2))
    def test_runs_until_cancelled(self):
        token = CancelToken()
        log = Mock()
        sut = CountingLoop(token, log)
        sut.start()
        sut.start()
        token.cancel()
        sut.join()
        assert_that(sut.shut_down.is_set(), is_(True))
        assert_that(sut.failure, is_(none()))
        log.error.assert_not_called()

    @timeout_decorator.timeout(debug_timeout(2))
    def test_exception_cancels_token(self):
        token = CancelToken()
        log = Mock()
        sut = CountingLoop(token, log, failure_at=3)
        sut.start()
        sut.join()
        assert_that(sut.count, is_(3))
        assert_that(sut.failure, is_(instance_of(ValueError)))
        assert_that(token.cause, is_(sut.failure))
        log.error.assert_called_once()
        assert_that(sut.shut_down.is_set(), is_(True))

    def test_join_before_start(self):
        ConnectionLoop(CancelToken()).join()


class ReadLoopTest(unittest.TestCase):

    def setUp(self):
        self.token = CancelToken()
        self.conduit = Mock()
        self.reader = Mock()
        self.sut = ReadLoop(self.conduit, self.reader, self.token, Mock())

    def test_feeds_lines_to_reader(self):
        self.conduit.read_line.return_value = "BEGIN"
        self.sut.loop()
        self.reader.read.assert_called_once_with("BEGIN")

    def test_end_of_stream_is_fatal(self):
        self.conduit.read_line.return_value = None
        assert_that(calling(self.sut.loop), raises(ConnectionClosedError))

    def test_end_of_stream_after_cancel(self):
        self.conduit.read_line.return_value = None
        self.token.cancel()
        self.sut.loop()
        self.reader.read.assert_not_called()

    def test_read_error_is_fatal(self):
        self.conduit.read_line.side_effect = ConnectionResetError("reset")
        assert_that(calling(self.sut.loop), raises(ConnectionLostError, "reset"))

    def test_read_error_after_cancel(self):
        self.conduit.read_line.side_effect = ValueError("I/O operation on closed file")
        self.token.cancel()
        self.sut.loop()

    @timeout_decorator.timeout(debug_timeout(2))
    def test_runs_until_end_of_stream(self):
        self.conduit.read_line.side_effect = ["a", "b", None]
        self.sut.start()
        self.sut.join()
        assert_that([c[0][0] for c in self.reader.read.call_args_list], is_(["a", "b"]))
        assert_that(self.sut.failure, is_(instance_of(ConnectionClosedError)))
        assert_that(self.token.cause, is_(self.sut.failure))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
