"""
Serializes commands over a connection that is also carrying broadcasts.

lircd answers commands in the order it receives them, but its replies only name the command
they answer. To pair each reply with its caller, no command is sent until the reply to the
previous one has been routed. CommandGate enforces this, and DispatchLoop does the writing
and routing on the connection's dispatch thread.
"""
import logging
import threading
from queue import Queue

from lircconnect.commands import Command
from lircconnect.conduit.base import LineConduit
from lircconnect.connector.base import ConnectionClosedError, ConnectionLostError, ConnectorError
from lircconnect.protocol.asynchronous import ConnectionLoop, FutureReply
from lircconnect.protocol.messages import CommandReply
from lircconnect.support.cancellation import CancelToken, notify_on_cancel

logger = logging.getLogger(__name__)

# the command name of the block lircd sends to all clients after reloading its configuration
RELOAD_NOTIFICATION = "SIGHUP"

_SEND = 'send'
_REPLY = 'reply'
_STOP = 'stop'


class CommandGate:
    """
    Admits one command at a time.

    The gate is shut while no connection is running. While running it has a single slot,
    which is either free, accepting a new command, or held by the command awaiting its reply.
    The slot is freed only when a reply is routed or the connection stops, never by the caller,
    so a caller that gives up waiting does not let a second command onto the wire early.
    """

    def __init__(self):
        self._condition = threading.Condition()
        self._submit = None
        self._pending = None

    @property
    def running(self) -> bool:
        return self._submit is not None

    @property
    def pending(self) -> FutureReply:
        """ the command awaiting its reply, if any. """
        return self._pending

    def open(self, submit):
        """
        Starts admitting commands.
        :param submit: called with each admitted FutureReply, while the gate's lock is held,
            so it must not block
        """
        with self._condition:
            self._submit = submit
            self._pending = None
            self._condition.notify_all()

    def close(self) -> FutureReply:
        """ Stops admitting commands.
            :return: the command that was awaiting its reply, if any """
        with self._condition:
            pending = self._pending
            self._submit = None
            self._pending = None
            self._condition.notify_all()
            return pending

    def acquire(self, command: Command, token: CancelToken=None) -> FutureReply:
        """
        Waits for the slot to be free, then takes it for the command and submits the command.
        :return: the future the command's reply will be delivered to
        :raises Cancelled: if the token is cancelled first
        """
        condition = self._condition
        with notify_on_cancel(token, condition):
            with condition:
                condition.wait_for(lambda: (self.running and self._pending is None) or
                                   (token is not None and token.cancelled))
                if token is not None:
                    token.raise_if_cancelled()
                future = self._pending = FutureReply(command)
                self._submit(future)
                return future

    def release(self) -> FutureReply:
        """ Frees the slot.
            :return: the command that was holding it, if any """
        with self._condition:
            pending = self._pending
            self._pending = None
            self._condition.notify_all()
            return pending


class DispatchLoop(ConnectionLoop):
    """
    The write side of a connection. Waits for whichever comes first of a command admitted by
    the gate, a reply completed by the reader, or the connection stopping.
    Only replies arriving after a command was written are routed to it; others are discarded.

    Commands are written as a single line of space separated tokens. A write error is fatal to
    the connection. Replies are handed to the command holding the gate, which is then freed,
    whether or not the reply names that command; checking the name is left to the caller.
    lircd's reload notification is logged and does not touch the gate.
    """
    name = 'lirc-dispatch'

    def __init__(self, conduit: LineConduit, gate: CommandGate, token: CancelToken, log=logger):
        super().__init__(token, log)
        self.conduit = conduit
        self.gate = gate
        self.inbox = Queue()
        self.awaiting = None    # the command written to lircd whose reply has not been routed

    def submit(self, future: FutureReply):
        self.inbox.put((_SEND, future))

    def route(self, reply: CommandReply):
        """ called on the read thread with each completed reply. """
        self.inbox.put((_REPLY, reply))

    def _stop(self, token):
        self.inbox.put((_STOP, None))

    def startup(self):
        self.token.add_callback(self._stop)
        self.gate.open(self.submit)

    def shutdown(self):
        self.token.remove_callback(self._stop)
        pending = self.gate.close()
        if pending is not None:
            cause = self.token.cause
            if not isinstance(cause, ConnectorError):
                cause = ConnectionClosedError("connection closed before lircd replied to %s" % pending.command.name)
            pending.resolve(cause)

    def loop(self):
        kind, item = self.inbox.get()
        if kind is _SEND:
            self._send(item)
        elif kind is _REPLY:
            self._route(item)

    def _send(self, future: FutureReply):
        line = future.command.to_line()
        try:
            self.conduit.write_line(line)
        except (OSError, ValueError) as e:
            if self.token.cancelled:
                return
            raise ConnectionLostError("error writing to lircd socket: %s" % e) from e
        self.awaiting = future
        self.logger.debug("sent command %s" % line.rstrip())

    def _route(self, reply: CommandReply):
        if reply.command == RELOAD_NOTIFICATION:
            self.logger.info("lircd has been reloaded")
            return

        future = self.awaiting
        if future is None:
            self.logger.warning("discarding reply to %s, no command is awaiting a reply" % reply.command)
            return
        self.awaiting = None
        future.resolve(reply)
        self.gate.release()
