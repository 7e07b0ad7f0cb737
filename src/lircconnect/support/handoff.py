import threading
from queue import Empty

from lircconnect.support.cancellation import CancelToken, Cancelled, notify_on_cancel

_EMPTY = object()


class Handoff:
    """
    A blocking handoff from one producing thread to any number of consuming threads.

    put() only returns once a consumer has taken the item, so items are delivered one at a time
    in the order they were put. A producer whose token is cancelled before its item is taken
    withdraws the item, which is then never delivered.

    The handoff is never closed. Consumers learn about shutdown from their own cancel token.
    """

    def __init__(self):
        self._condition = threading.Condition()
        self._item = _EMPTY
        self._offered = 0   # number of items placed in the slot
        self._taken = 0     # number of items consumers have taken

    def put(self, item, token: CancelToken=None) -> bool:
        """
        Offers an item and waits for a consumer to take it.
        :return: True if the item was delivered, False if the token was cancelled first.
        """
        condition = self._condition
        with notify_on_cancel(token, condition):
            with condition:
                condition.wait_for(lambda: self._item is _EMPTY or _cancelled(token))
                if self._item is not _EMPTY or _cancelled(token):
                    return False
                self._item = item
                self._offered += 1
                ticket = self._offered
                condition.notify_all()

                condition.wait_for(lambda: self._taken >= ticket or _cancelled(token))
                if self._taken >= ticket:
                    return True
                self._item = _EMPTY
                self._offered -= 1
                condition.notify_all()
                return False

    def get(self, token: CancelToken=None, timeout=None):
        """
        Takes the next item, waiting for one to be offered.
        :raises Cancelled: if the token is cancelled before an item arrives
        :raises queue.Empty: if the timeout passes before an item arrives
        """
        condition = self._condition
        with notify_on_cancel(token, condition):
            with condition:
                ready = condition.wait_for(lambda: self._item is not _EMPTY or _cancelled(token), timeout)
                if self._item is _EMPTY:
                    if ready:
                        token.raise_if_cancelled()
                    raise Empty()
                item = self._item
                self._item = _EMPTY
                self._taken += 1
                condition.notify_all()
                return item

    def iter(self, token: CancelToken):
        """ yields items as they arrive until the token is cancelled. """
        while True:
            try:
                yield self.get(token)
            except Cancelled:
                return


def _cancelled(token):
    return token is not None and token.cancelled
