import logging
import socket

from lircconnect.conduit.base import LineConduit
from lircconnect.conduit.socket_conduit import SocketConduit
from lircconnect.connector.base import AbstractConnector, ConnectionNotAvailableError

logger = logging.getLogger(__name__)

# the port lircd listens on when started with --listen
default_port = 8765

# the socket lircd creates by default
default_socket_path = '/run/lirc/lircd'


class TCPEndpoint:
    """
    Describes a TCP endpoint, either as a host name or an IP address.
    """
    def __init__(self, host, port=default_port):
        self.host = host
        self.port = int(port)

    @classmethod
    def parse(cls, address, port=default_port):
        """
        Parses an address of the form host, host:port or [ipv6]:port.

        >>> TCPEndpoint.parse('lirc.local').key()
        'lirc.local:8765'
        >>> TCPEndpoint.parse('10.0.0.2:9000').key()
        '10.0.0.2:9000'
        >>> TCPEndpoint.parse('[::1]:9000').host
        '::1'
        """
        host = address
        if address.startswith('['):
            host, _, rest = address[1:].partition(']')
            if rest.startswith(':'):
                port = rest[1:]
        elif address.count(':') == 1:
            host, port = address.split(':')
        try:
            return cls(host, port)
        except ValueError as e:
            raise ValueError("invalid port in lircd address %r" % address) from e

    def key(self):
        return '%s:%d' % (self.host, self.port)

    def __str__(self):
        return self.key()


class SocketConnector(AbstractConnector):
    """
    A connector that communicates lines of text via a stream socket.
    """
    def __init__(self, sock_args, connect_args, timeout=5, report_errors=True):
        """
        :param sock_args: the arguments passed to socket.socket(), selecting the address family.
        :param connect_args: the address passed to socket.connect()
        :param timeout: seconds to wait for the connection to be established
        :param report_errors: when True, connection failures are logged as warnings, otherwise at debug level
        """
        super().__init__()
        self._sock_args = sock_args
        self._connect_args = connect_args
        self.timeout = timeout
        self._report_errors = report_errors

    @property
    def endpoint(self):
        return self._connect_args

    def _open_socket(self) -> socket.socket:
        sock = socket.socket(*self._sock_args)
        try:
            sock.settimeout(self.timeout)
            sock.connect(self._connect_args)
        except OSError:
            sock.close()
            raise
        return sock

    def _connect(self) -> LineConduit:
        try:
            sock = self._open_socket()
            sock.settimeout(None)
        except OSError as e:
            method = logger.warning if self._report_errors else logger.debug
            method("error opening socket to %s: %s" % (self.endpoint, e))
            raise ConnectionNotAvailableError("cannot dial lircd connection to %s" % (self.endpoint,)) from e
        logger.info("opened socket to %s" % (self.endpoint,))
        return LineConduit(SocketConduit(sock))


class UnixSocketConnector(SocketConnector):
    """ Connects to lircd through its Unix domain socket. """
    def __init__(self, path=default_socket_path, timeout=5, report_errors=True):
        super().__init__((socket.AF_UNIX, socket.SOCK_STREAM), path, timeout, report_errors)


class TCPSocketConnector(SocketConnector):
    """ Connects to lircd over TCP. The host name is resolved each time the connector connects. """
    def __init__(self, endpoint: TCPEndpoint, timeout=5, report_errors=True):
        super().__init__((), endpoint, timeout, report_errors)

    def _open_socket(self) -> socket.socket:
        endpoint = self._connect_args
        return socket.create_connection((endpoint.host, endpoint.port), self.timeout)
