"""
Building blocks for running the lircd protocol asynchronously: the loops that run on each
connection's background threads, and the future through which a command's reply is delivered.
"""
import logging
import threading
from concurrent.futures import Future

from lircconnect.commands import Command
from lircconnect.conduit.base import LineConduit
from lircconnect.connector.base import ConnectionClosedError, ConnectionLostError
from lircconnect.protocol.reader import ProtocolReader
from lircconnect.support.cancellation import CancelToken

logger = logging.getLogger(__name__)


class FutureReply(Future):
    """ The reply to a command that may not have arrived yet. Whoever resolves it first wins:
        the reply routed from lircd, the caller giving up, or the connection shutting down. """

    def __init__(self, command: Command):
        super().__init__()
        self.command = command
        self._resolve_lock = threading.Lock()

    def resolve(self, value) -> bool:
        """
        Sets the result, or the exception when value is an exception.
        :return: False if the future was already resolved, and the value was ignored.
        """
        with self._resolve_lock:
            if self.done():
                return False
            if isinstance(value, BaseException):
                self.set_exception(value)
            else:
                self.set_result(value)
            return True


class ConnectionLoop:
    """ Repeatedly runs loop() on a background thread for as long as the connection's token is live.

        An exception escaping loop() is fatal to the connection: it is logged, kept as failure, and
        cancels the token with the exception as cause, which stops every loop sharing the token.
        Whenever the loop ends, for any reason, the token is cancelled.
    """
    name = 'lirc-loop'

    def __init__(self, token: CancelToken, log=logger):
        self.token = token
        self.background_thread = None
        self.failure = None
        self.logger = log

    def start(self):
        if self.background_thread is None:
            t = threading.Thread(target=self._run, name=self.name, daemon=True)
            self.background_thread = t
            t.start()

    def exception_handler(self, e):
        if self.token.cancel(e):
            self.failure = e
            self.logger.error("%s failed: %s" % (self.name, e))

    def _run(self):
        """ The processing loop for the background thread.
             Invokes loop() for as long as the token is not cancelled.
        """
        try:
            self.startup()
            while self.running():
                self.loop()
        except Exception as e:
            self.exception_handler(e)
        finally:
            self.token.cancel()
            self.shutdown()
            self.logger.debug("%s exiting" % self.name)

    def startup(self):
        """ template method called when the thread starts"""
        pass

    def loop(self):
        raise NotImplementedError()

    def shutdown(self):
        """ template method called when the thread exits """
        pass

    def running(self):
        return not self.token.cancelled

    def join(self, timeout=None):
        thread = self.background_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)


class ReadLoop(ConnectionLoop):
    """
    Reads lines from the conduit and feeds them to the protocol reader.

    A read error after the token was cancelled comes from the connection being closed under the
    loop, and ends it quietly. Any other read error, or lircd closing the stream, is fatal.
    """
    name = 'lirc-read'

    def __init__(self, conduit: LineConduit, reader: ProtocolReader, token: CancelToken, log=logger):
        super().__init__(token, log)
        self.conduit = conduit
        self.reader = reader

    def loop(self):
        try:
            line = self.conduit.read_line()
        except (OSError, ValueError) as e:
            if self.token.cancelled:
                return
            raise ConnectionLostError("error reading from lircd socket: %s" % e) from e
        if line is None:
            if not self.token.cancelled:
                raise ConnectionClosedError("lircd closed the connection")
            return
        self.reader.read(line)
