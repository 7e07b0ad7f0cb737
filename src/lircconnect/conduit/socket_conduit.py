import socket

from lircconnect.conduit import base


class SocketConduit(base.Conduit):
    """
    A conduit that provides communication via a socket.
    :param sock The open, connected socket
    """
    def __init__(self, sock: socket.socket):
        """
        :param sock: the client socket that represents the connection
        :type sock: socket
        """
        self.sock = sock
        self.read = sock.makefile('rb')
        self.write = sock.makefile('wb')

    @property
    def open(self) -> bool:
        return self.sock.fileno() >= 0

    @property
    def target(self):
        return self.sock

    @property
    def output(self):
        return self.write

    @property
    def input(self):
        return self.read

    def close(self):
        """
        Shuts the socket down before closing the streams. The shutdown wakes any thread blocked
        reading from the socket, which would otherwise hold the input stream's lock and stall the close.
        """
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass    # the peer may have closed the socket already
        try:
            self.write.close()
        except OSError:
            pass    # unflushed output to a dead peer
        finally:
            self.read.close()
            self.sock.close()
