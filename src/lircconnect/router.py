"""
Routes button presses to handlers registered by remote and button name.
"""
import logging
from fnmatch import fnmatchcase

from lircconnect.protocol.messages import ButtonPress
from lircconnect.support.cancellation import CancelToken, Cancelled
from lircconnect.support.events import EventSource
from lircconnect.support.handoff import Handoff

logger = logging.getLogger(__name__)


class EventRouter:
    """
    Dispatches each ButtonPress to the handlers registered for its remote and button.

    Names may be given as shell-style patterns, as understood by fnmatch: '*' matches any name.
    When handlers are registered under the exact remote and button names of an event, only those
    handlers are called. Otherwise every registration whose remote and button patterns both match
    the event is called.
    """

    def __init__(self, handlers=None):
        """
        :param handlers: optional mapping from remote name to a mapping from button name to handler
        """
        self._routes = {}
        for remote, buttons in (handlers or {}).items():
            for button, handler in buttons.items():
                self.add(remote, button, handler)

    def add(self, remote, button, handler):
        """ registers a callable that is called with each matching ButtonPress. """
        self._routes.setdefault((remote, button), EventSource()).add(handler)
        return self

    def remove(self, remote, button, handler):
        source = self._routes.get((remote, button))
        if source is not None:
            source.remove(handler)
            if not len(source):
                del self._routes[(remote, button)]
        return self

    def matching(self, event: ButtonPress):
        """ the event sources that handle the given event. """
        exact = self._routes.get((event.remote_control_name, event.button_name))
        if exact is not None:
            return [exact]
        return [source for (remote, button), source in self._routes.items()
                if fnmatchcase(event.remote_control_name, remote) and fnmatchcase(event.button_name, button)]

    def route(self, event: ButtonPress) -> bool:
        """
        Calls the handlers for the event.
        :return: True if any handlers were registered for the event
        """
        sources = self.matching(event)
        for source in sources:
            source.fire(event)
        return bool(sources)

    __call__ = route


def route_events(events: Handoff, router, token: CancelToken) -> Cancelled:
    """
    Takes events from the event output and routes them until the token is cancelled.
    :param router: an EventRouter, or a mapping from remote to button to handler
    :return: the token's error, describing why routing stopped
    """
    if not isinstance(router, EventRouter):
        router = EventRouter(router)
    for event in events.iter(token):
        if not router.route(event):
            logger.debug("no handler for %s %s" % (event.remote_control_name, event.button_name))
    return token.error
