"""
A client connection to lircd.

lircd sends two kinds of traffic over a client's socket: button presses broadcast to every
client, and replies to the commands this client sends. A Connection runs two background
threads while started. The read thread classifies each line, passing button presses to the
events output and completed replies to the dispatch thread. The dispatch thread writes commands
one at a time and hands each reply to the caller waiting for it.

    conn = Connection.unix('/run/lirc/lircd')
    token = CancelToken()
    threading.Thread(target=conn.start, args=(token,)).start()
    reply = conn.send_command(Version(), token)
    for press in conn.events.iter(token):
        ...

The events output is a blocking handoff: the read thread waits for each press to be taken, so
an application that sends commands must also keep taking events.
"""
import logging

from lircconnect.commands import Command, SendStart, SendStop
from lircconnect.config.config import apply_conf_path, load_settings
from lircconnect.connector.base import Connector, ConnectorError
from lircconnect.connector.socketconn import TCPEndpoint, TCPSocketConnector, UnixSocketConnector, \
    default_socket_path
from lircconnect.protocol.asynchronous import ReadLoop
from lircconnect.protocol.dispatch import CommandGate, DispatchLoop
from lircconnect.protocol.messages import CommandError, CommandReply, ReplyMismatchError, UnsuccessfulCommandError
from lircconnect.protocol.reader import ProtocolReader
from lircconnect.support.cancellation import CancelToken, Cancelled
from lircconnect.support.handoff import Handoff

logger = logging.getLogger(__name__)

# the longest a command waits for its reply, in seconds, unless the caller's deadline is sooner
command_timeout = 10.0


class Connection:
    """
    A connection to lircd that is not established until start() is called.

    :param connector: dials lircd and provides the conduit to it
    """

    def __init__(self, connector: Connector):
        self.connector = connector
        self.events = Handoff()
        self.command_timeout = command_timeout
        self._gate = CommandGate()
        self.log = logger

    @classmethod
    def unix(cls, path=default_socket_path, timeout=5):
        """ creates a connection to lircd's Unix domain socket. """
        return cls(UnixSocketConnector(path, timeout))

    @classmethod
    def tcp(cls, address, timeout=5):
        """ creates a connection to lircd over TCP.
        :param address: a TCPEndpoint, or a string of the form host[:port]
        """
        endpoint = address if isinstance(address, TCPEndpoint) else TCPEndpoint.parse(address)
        return cls(TCPSocketConnector(endpoint, timeout))

    @classmethod
    def from_config(cls, config=None):
        """
        Creates a connection from settings. The lircd section selects the endpoint, using TCP
        when host is set and the Unix socket otherwise. The connection section sets attributes
        of the connection, such as command_timeout.
        :param config: the settings. When not given, they are loaded with load_settings().
        """
        if config is None:
            config = load_settings()
        lircd = config['lircd']
        if lircd['host']:
            connection = cls.tcp(TCPEndpoint(lircd['host'], lircd['port']), lircd['connect_timeout'])
        else:
            connection = cls.unix(lircd['socket'], lircd['connect_timeout'])
        apply_conf_path(config, ['connection'], connection)
        return connection

    @property
    def running(self) -> bool:
        return self._gate.running

    def start(self, token: CancelToken=None, log=logger):
        """
        Connects to lircd and runs the connection until the token is cancelled or the connection
        fails. Blocks until both background threads have stopped and the socket is closed.

        :param token: cancelling this token closes the connection
        :param log: the logger used for the connection's protocol messages
        :return: None when the connection was closed by cancelling the token
        :raises ConnectionNotAvailableError: if lircd cannot be reached. No threads are started.
        :raises ConnectorError: the error that ended the connection, such as ConnectionLostError
            for an I/O error, or ConnectionClosedError when lircd closed the socket.
        """
        self.log = log
        conduit = self.connector.connect()
        endpoint = self.connector.endpoint
        log.info("connected to lircd at %s" % (endpoint,))

        scope = CancelToken(parent=token)
        reader = ProtocolReader(log)
        read_loop = ReadLoop(conduit, reader, scope, log)
        dispatch_loop = DispatchLoop(conduit, self._gate, scope, log)
        reader.events += lambda event: self.events.put(event, scope)
        reader.replies += dispatch_loop.route

        failure = None
        try:
            dispatch_loop.start()
            read_loop.start()
            scope.wait()
        finally:
            scope.cancel()
            conduit.close()     # wakes the read thread
            read_loop.join()
            dispatch_loop.join()
            failure = read_loop.failure or dispatch_loop.failure
            self.connector.disconnect(failure)
            log.info("disconnected from lircd at %s" % (endpoint,))

        if failure is not None:
            if isinstance(failure, ConnectorError):
                raise failure
            raise ConnectorError("lircd connection failed: %s" % failure) from failure

    def send_command(self, command: Command, token: CancelToken=None) -> CommandReply:
        """
        Sends a command to lircd and waits for its reply.

        Only one command is sent at a time: this waits for any command already sent to be answered,
        and, when the connection is not started, for it to start. The reply is awaited for at most
        command_timeout seconds after the command was admitted, or until the token is cancelled.

        :return: the reply
        :raises Cancelled: if the token is cancelled first. DeadlineExceeded when the token's
            deadline or the command timeout passes.
        :raises UnsuccessfulCommandError: if lircd replied with ERROR
        :raises ReplyMismatchError: if the reply names a different command
        :raises ConnectorError: if the connection stopped before the reply arrived
        """
        future = self._gate.acquire(command, token)
        with CancelToken(parent=token, timeout=self.command_timeout) as waiting:
            waiting.add_callback(lambda t: future.resolve(t.error))
            reply = future.result()

        if reply.name != command.name:
            raise ReplyMismatchError(command.name, reply)
        if not reply.success:
            raise UnsuccessfulCommandError(reply)
        return reply

    def repeat_button(self, remote, button, token: CancelToken=None):
        """
        Tells lircd to keep sending the button until the returned callable is called.
        The stop command is sent with the same token. Its failure is logged but not raised.
        :return: a callable that stops the repeat
        """
        self.send_command(SendStart(remote, button), token)

        def stop():
            try:
                self.send_command(SendStop(remote, button), token)
            except (CommandError, Cancelled, ConnectorError) as e:
                self.log.warning("cannot stop repeating %s %s: %s" % (remote, button, e))

        return stop
