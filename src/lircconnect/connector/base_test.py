import unittest
from unittest.mock import Mock

from hamcrest import assert_that, is_, raises, calling, instance_of, none

from lircconnect.connector.base import ConnectorEvent, ConnectorConnectedEvent, ConnectorDisconnectedEvent, Connector, \
    AbstractConnector, ConnectionNotAvailableError, ConnectionNotConnectedError
from lircconnect.support.events import EventSource


class ConnectorEventsTest(unittest.TestCase):

    def test_connector_event(self):
        self.assert_event(ConnectorEvent)
        self.assert_event(ConnectorConnectedEvent)
        self.assert_event(ConnectorDisconnectedEvent)

    def assert_event(self, event_class):
        source = Mock()
        event = event_class(source)
        assert_that(event.connector, is_(source))
        source.assert_not_called()

    def test_disconnected_event_cause(self):
        cause = IOError()
        assert_that(ConnectorDisconnectedEvent(Mock()).cause, is_(none()))
        assert_that(ConnectorDisconnectedEvent(Mock(), cause).cause, is_(cause))


class ConnectorTest(unittest.TestCase):
    def test_abstract_methods(self):
        sut = Connector()
        assert_that(sut.events, is_(instance_of(EventSource)))
        assert_that(calling(sut.disconnect), raises(NotImplementedError))
        assert_that(calling(sut.connect), raises(NotImplementedError))
        # testing properties is a little strange since the property access has to be deffered
        # or it will throw an exception outside the scope of the assert test.
        assert_that(calling(getattr).with_args(sut, 'endpoint'), raises(NotImplementedError))
        assert_that(calling(getattr).with_args(sut, 'connected'), raises(NotImplementedError))
        assert_that(calling(getattr).with_args(sut, 'conduit'), raises(NotImplementedError))


class AbstractTestConnector(AbstractConnector):
    """
    connects to a mock conduit, or fails when available is False
    """
    def __init__(self):
        super().__init__()
        self.available = True
        self.connect_count = 0

    @property
    def endpoint(self):
        return 'test'

    def _connect(self):
        if not self.available:
            raise ConnectionNotAvailableError()
        self.connect_count += 1
        conduit = Mock()
        conduit.open = True
        return conduit


class AbstractConnectorTest(unittest.TestCase):
    def setUp(self):
        self.sut = AbstractTestConnector()
        self.events = []
        self.sut.events += self.events.append

    def test_constructor(self):
        sut = AbstractConnector()
        assert_that(sut.events, is_(instance_of(EventSource)))
        assert_that(sut._conduit, is_(None))
        assert_that(sut.connected, is_(False))

    def test_abstract_methods(self):
        sut = AbstractConnector()
        assert_that(calling(sut._connect), raises(NotImplementedError))

    def test_connect(self):
        conduit = self.sut.connect()
        assert_that(self.sut.connected, is_(True))
        assert_that(self.sut.conduit, is_(conduit))
        assert_that(len(self.events), is_(1))
        assert_that(self.events[0], is_(instance_of(ConnectorConnectedEvent)))
        assert_that(self.events[0].connector, is_(self.sut))

    def test_connect_when_connected_returns_existing_conduit(self):
        conduit = self.sut.connect()
        assert_that(self.sut.connect(), is_(conduit))
        assert_that(self.sut.connect_count, is_(1))
        assert_that(len(self.events), is_(1))

    def test_connect_after_conduit_closed_reconnects(self):
        conduit = self.sut.connect()
        conduit.open = False
        assert_that(self.sut.connected, is_(False))
        self.sut.connect()
        assert_that(self.sut.connect_count, is_(2))

    def test_connect_not_available(self):
        self.sut.available = False
        assert_that(calling(self.sut.connect), raises(ConnectionNotAvailableError))
        assert_that(self.sut.connected, is_(False))
        assert_that(self.events, is_([]))

    def test_disconnect(self):
        conduit = self.sut.connect()
        cause = IOError("gone")
        self.sut.disconnect(cause)
        conduit.close.assert_called_once()
        assert_that(self.sut.connected, is_(False))
        event = self.events[-1]
        assert_that(event, is_(instance_of(ConnectorDisconnectedEvent)))
        assert_that(event.cause, is_(cause))

    def test_disconnect_when_not_connected(self):
        self.sut.disconnect()
        assert_that(self.events, is_([]))

    def test_conduit_not_connected(self):
        assert_that(calling(getattr).with_args(self.sut, 'conduit'), raises(ConnectionNotConnectedError))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
