"""
Classifies the lines lircd sends. A line is either a broadcast button press, or part of a reply
block framed by BEGIN and END:

    BEGIN
    <command>
    SUCCESS|ERROR
    [DATA
     <n>
     <n lines of data>]
    END

The parser is an explicit state plus the reply being assembled. Each state has a transition
function that computes the next state from the line; transitions do no I/O and report malformed
input by raising ProtocolError. ProtocolReader applies the transitions, logs protocol errors and
hands completed events and replies on.
"""
import logging
import re
from enum import Enum

from lircconnect.protocol.messages import ButtonPress, CommandReply, ProtocolError
from lircconnect.support.events import EventSource

logger = logging.getLogger(__name__)

BEGIN = "BEGIN"
END = "END"
DATA = "DATA"
SUCCESS = "SUCCESS"
ERROR = "ERROR"

_code_digits = 16
_code_bytes = 8
_decimal = re.compile(r'[0-9]{1,20}')
_decimal_max = 2**64 - 1


class ParserState(Enum):
    IDLE = 0
    REPLY_HEADER = 1
    STATUS = 2
    DATA_START = 3
    DATA_LENGTH = 4
    DATA_COLLECT = 5
    DATA_END = 6


class Transaction:
    """ the reply being received. Transitions derive a new Transaction rather than changing one. """
    __slots__ = ('command', 'success', 'length', 'data')

    def __init__(self, command=None, success=True, length=0, data=()):
        self.command = command
        self.success = success
        self.length = length
        self.data = tuple(data)

    def updated(self, **changes) -> 'Transaction':
        fields = {name: getattr(self, name) for name in self.__slots__}
        fields.update(changes)
        return Transaction(**fields)

    def reply(self) -> CommandReply:
        return CommandReply(self.command, self.success, self.data)


class Transition:
    """
    The result of feeding one line to the parser.
    :param state: the state to move to
    :param transaction: the reply being assembled, or None when idle
    :param output: a ButtonPress or CommandReply completed by the line, or None
    """
    __slots__ = ('state', 'transaction', 'output')

    def __init__(self, state: ParserState, transaction: Transaction=None, output=None):
        self.state = state
        self.transaction = transaction
        self.output = output


def parse_decimal(text, what):
    """ parses an unsigned 64 bit decimal.

    >>> parse_decimal('18446744073709551615', 'count')
    18446744073709551615
    """
    if not _decimal.fullmatch(text):
        raise ProtocolError("%s not parseable as a non-negative decimal" % what, line=text[:32])
    try:
        value = int(text)
    except ValueError as e:
        raise ProtocolError("%s not parseable as a non-negative decimal" % what, line=text[:32]) from e
    if value > _decimal_max:
        raise ProtocolError("%s out of range" % what, line=text)
    return value


def decode_button_press(line) -> ButtonPress:
    """
    Decodes a broadcast line: a hexadecimal code, the repeat count, the button name and the
    remote name. The code is left padded with zeros to 16 digits and the 16 bit legacy code is
    read little endian from its first two bytes.

    >>> decode_button_press('000000000000002a 0 KEY_POWER Television')
    ButtonPress(code=0, repeat_count=0, button_name='KEY_POWER', remote_control_name='Television')
    >>> decode_button_press('2a01 3 KEY_UP tv').code
    0
    >>> decode_button_press('0102000000000000 1 KEY_UP tv').code
    513
    """
    fields = line.split()
    if len(fields) < 4:
        raise ProtocolError("lirc broadcast has fewer than 4 fields", line=line, fields=len(fields))
    hex_code, repeats, button, remote = fields[:4]
    hex_code = hex_code.rjust(_code_digits, '0')
    try:
        code = bytes.fromhex(hex_code)
    except ValueError as e:
        raise ProtocolError("lirc code not parseable as hex", len=len(hex_code)) from e
    if len(code) != _code_bytes:
        raise ProtocolError("lirc code has wrong length for 16-bit integer", len=len(code))
    repeat_count = parse_decimal(repeats, "lirc repeat count")
    return ButtonPress(int.from_bytes(code[:2], 'little'), repeat_count, button, remote)


def idle(transaction, line) -> Transition:
    if line == BEGIN:
        return Transition(ParserState.REPLY_HEADER, Transaction())
    return Transition(ParserState.IDLE, None, decode_button_press(line))


def reply_header(transaction, line) -> Transition:
    return Transition(ParserState.STATUS, Transaction(command=line))


def status(transaction, line) -> Transition:
    if line == SUCCESS:
        return Transition(ParserState.DATA_START, transaction)
    if line == ERROR:
        return Transition(ParserState.DATA_START, transaction.updated(success=False))
    if line == END:
        return Transition(ParserState.IDLE, None, transaction.reply())
    raise ProtocolError("lirc reply message received has invalid status", line=line)


def data_start(transaction, line) -> Transition:
    if line == DATA:
        return Transition(ParserState.DATA_LENGTH, transaction)
    if line == END:
        return Transition(ParserState.IDLE, None, transaction.reply())
    raise ProtocolError("lirc reply message received has invalid data start", line=line)


def data_length(transaction, line) -> Transition:
    transaction = transaction.updated(length=parse_decimal(line, "lirc reply data length"))
    if not transaction.length:
        return Transition(ParserState.DATA_END, transaction)
    return Transition(ParserState.DATA_COLLECT, transaction)


def data_collect(transaction, line) -> Transition:
    transaction = transaction.updated(data=transaction.data + (line,))
    if len(transaction.data) >= transaction.length:
        return Transition(ParserState.DATA_END, transaction)
    return Transition(ParserState.DATA_COLLECT, transaction)


def data_end(transaction, line) -> Transition:
    if line != END:
        raise ProtocolError("lirc reply message received has invalid data end, discarding reply",
                            line=line, length=transaction.length, received=len(transaction.data))
    return Transition(ParserState.IDLE, None, transaction.reply())


transitions = {
    ParserState.IDLE: idle,
    ParserState.REPLY_HEADER: reply_header,
    ParserState.STATUS: status,
    ParserState.DATA_START: data_start,
    ParserState.DATA_LENGTH: data_length,
    ParserState.DATA_COLLECT: data_collect,
    ParserState.DATA_END: data_end,
}


class ProtocolReader:
    """
    Feeds lines through the parser one at a time, on a single reading thread.

    Completed button presses are fired to the handlers in events, and completed replies to the
    handlers in replies. A malformed line is logged and puts the parser back in the idle state,
    discarding any reply being assembled, so the next well formed line is read normally.
    """

    def __init__(self, log=logger):
        self.state = ParserState.IDLE
        self.transaction = None
        self.events = EventSource()
        self.replies = EventSource()
        self.logger = log

    def reset(self):
        self.state = ParserState.IDLE
        self.transaction = None

    def read(self, line: str):
        """
        Processes one line, without its line terminator.
        :return: the ButtonPress or CommandReply completed by the line, if any
        """
        state = self.state
        try:
            transition = transitions[state](self.transaction, line)
        except ProtocolError as e:
            context = ", ".join("%s=%r" % item for item in sorted(e.context.items()))
            self.logger.error("lirc error in state %s: %s (%s)" % (state.name, e, context))
            self.reset()
            return None

        self.state = transition.state
        self.transaction = transition.transaction
        output = transition.output
        if isinstance(output, ButtonPress):
            self.events.fire(output)
        elif isinstance(output, CommandReply):
            self.replies.fire(output)
        return output
