import unittest

from hamcrest import assert_that, contains_string, is_

from lircconnect.protocol.messages import CommandReply, ProtocolError, ReplyMismatchError, UnsuccessfulCommandError


class CommandReplyTest(unittest.TestCase):

    def test_defaults(self):
        sut = CommandReply("VERSION")
        assert_that(sut.success, is_(True))
        assert_that(sut.data, is_(()))

    def test_data_is_a_tuple(self):
        assert_that(CommandReply("LIST", True, ["tv", "amp"]).data, is_(("tv", "amp")))

    def test_name(self):
        assert_that(CommandReply("SEND_ONCE tv KEY_POWER").name, is_("SEND_ONCE"))
        assert_that(CommandReply("VERSION").name, is_("VERSION"))


class ErrorsTest(unittest.TestCase):

    def test_protocol_error_context(self):
        sut = ProtocolError("bad line", line="x")
        assert_that(str(sut), is_("bad line"))
        assert_that(sut.context, is_({'line': 'x'}))
        assert_that(isinstance(sut, ValueError), is_(True))

    def test_unsuccessful(self):
        reply = CommandReply("LIST DenonTuner", False)
        sut = UnsuccessfulCommandError(reply)
        assert_that(sut.reply, is_(reply))
        assert_that(str(sut), is_("lirc: unsuccessful command LIST DenonTuner"))

    def test_mismatch(self):
        reply = CommandReply("LIST")
        sut = ReplyMismatchError("VERSION", reply)
        assert_that(sut.expected, is_("VERSION"))
        assert_that(sut.reply, is_(reply))
        assert_that(str(sut), contains_string("'LIST'"))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
