import logging
from abc import abstractmethod

from lircconnect.conduit.base import LineConduit
from lircconnect.support.events import EventSource

logger = logging.getLogger(__name__)


class ConnectorError(Exception):
    """ Indicates an error condition with a connection. """


class ConnectionNotConnectedError(ConnectorError):
    """ Indicates a connection is in the disconnected state when a connection is required. """


class ConnectionNotAvailableError(ConnectorError):
    """ Indicates the endpoint could not be reached. """


class ConnectionLostError(ConnectorError):
    """ Reading from or writing to an established connection failed. The I/O error is the __cause__. """


class ConnectionClosedError(ConnectorError):
    """ The connection ended: lircd closed the stream, or the connection shut down while a command was pending. """


class ConnectorEvent:
    """ base class for connector events. """
    def __init__(self, connector):
        self.connector = connector


class ConnectorConnectedEvent(ConnectorEvent):
    """ The connector was connected. """


class ConnectorDisconnectedEvent(ConnectorEvent):
    """ The connector was disconnected.
    :param cause: the error that ended the connection, or None if it was closed deliberately
    """
    def __init__(self, connector, cause=None):
        super().__init__(connector)
        self.cause = cause


class Connector:
    """ A connector describes an endpoint to which a conduit can be established. """

    def __init__(self):
        self.events = EventSource()

    @property
    @abstractmethod
    def endpoint(self):
        """ the endpoint that this connector reaches out to """
        raise NotImplementedError

    @property
    @abstractmethod
    def connected(self) -> bool:
        """
        :return: True if this connector is connected to its underlying resource. False otherwise.
        """
        raise NotImplementedError

    @property
    @abstractmethod
    def conduit(self) -> LineConduit:
        """
        Retrieves the conduit for this connection.
        If the connection is not connected, raises ConnectionNotConnectedError
        """
        raise NotImplementedError

    @abstractmethod
    def connect(self) -> LineConduit:
        """
        Connects this connector to the underlying resource.
        If the connector is already connected, the existing conduit is returned.
        Raises ConnectionNotAvailableError if the connection cannot be established.
        """
        raise NotImplementedError

    @abstractmethod
    def disconnect(self, cause=None):
        raise NotImplementedError


class AbstractConnector(Connector):
    """ Manages the connection cycle to an endpoint.
        Fires ConnectorConnectedEvent and ConnectorDisconnectedEvent as the connection opens and closes. """

    def __init__(self):
        super().__init__()
        self._conduit = None

    @property
    def connected(self):
        return self._conduit is not None and self._conduit.open

    def connect(self) -> LineConduit:
        if self.connected:
            return self._conduit
        self._conduit = self._connect()
        self.events.fire(ConnectorConnectedEvent(self))
        return self._conduit

    def disconnect(self, cause=None):
        """
        Closes the conduit, if connected.
        :param cause: the error that ended the connection, passed on to the disconnected event
        """
        conduit = self._conduit
        if conduit is None:
            return
        self._conduit = None
        conduit.close()
        self.events.fire(ConnectorDisconnectedEvent(self, cause))

    @abstractmethod
    def _connect(self) -> LineConduit:
        """ Template method for subclasses to perform the connection.
            If connection is not possible, ConnectionNotAvailableError should be raised
        """
        raise NotImplementedError

    @property
    def conduit(self) -> LineConduit:
        """
        Retrieves the conduit for this connection.
        raises ConnectionNotConnectedError if not connected
        """
        self.check_connected()
        return self._conduit

    def check_connected(self):
        if not self.connected:
            raise ConnectionNotConnectedError
