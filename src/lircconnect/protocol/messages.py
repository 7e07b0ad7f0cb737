"""
The values decoded from lircd: button presses broadcast to every client, and the replies to
commands sent by this client.
"""
from lircconnect.support.mixins import ValueMixin


class ButtonPress(ValueMixin):
    """
    A button press broadcast by lircd.

    :param code: 16 bit value taken from the 64 bit code lircd sends. This is a legacy field and
        carries no reliable meaning; applications should ignore it.
    :param repeat_count: how long the button has been held. Starts at 0 for a new press and
        increments with each repeated signal.
    :param button_name: the name of the key as defined in lircd.conf
    :param remote_control_name: the name of the remote as defined in lircd.conf
    """
    _fields = ('code', 'repeat_count', 'button_name', 'remote_control_name')

    def __init__(self, code: int, repeat_count: int, button_name: str, remote_control_name: str):
        self._init_fields(code, repeat_count, button_name, remote_control_name)


class CommandReply(ValueMixin):
    """
    The reply lircd sends after receiving a command.

    :param command: the command name as echoed back by lircd
    :param success: False when lircd reported an error
    :param data: the lines of the data section, empty when there was none
    """
    _fields = ('command', 'success', 'data')

    def __init__(self, command: str, success: bool=True, data=()):
        self._init_fields(command, success, tuple(data))

    @property
    def name(self) -> str:
        """ the command name. lircd echoes the whole command line, so this is its first token.

        >>> CommandReply('LIST DenonTuner').name
        'LIST'
        """
        return self.command.split(' ', 1)[0]


class ProtocolError(ValueError):
    """ A line received from lircd does not fit the protocol. The offending line is discarded.
        Keyword arguments describe what was seen, and are kept in context for logging. """

    def __init__(self, message, **context):
        super().__init__(message)
        self.context = context


class CommandError(Exception):
    """ Base class for errors reported to the caller of a single command. The reply is available
        as the reply attribute. """

    def __init__(self, message, reply: CommandReply):
        super().__init__(message)
        self.reply = reply


class UnsuccessfulCommandError(CommandError):
    """ lircd replied to the command with ERROR. """

    def __init__(self, reply: CommandReply):
        super().__init__("lirc: unsuccessful command %s" % reply.command, reply)


class ReplyMismatchError(CommandError):
    """ The reply received names a different command from the one sent. """

    def __init__(self, expected, reply: CommandReply):
        super().__init__("unexpected reply command: %r, expected %r" % (reply.command, expected), reply)
        self.expected = expected
