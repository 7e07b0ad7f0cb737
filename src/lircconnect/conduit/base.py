from abc import abstractmethod
from io import IOBase

# the longest line accepted from lircd, including the line terminator
max_line_length = 64 * 1024


class Conduit:
    """
    A conduit allows two-way communication. It provides a file-like input endpoint and a file-like output endpoint.
    """

    @property
    @abstractmethod
    def target(self):
        raise NotImplementedError

    @property
    @abstractmethod
    def input(self) -> IOBase:
        """ fetches the binary stream that provides input.
            Callers can use the usual readXXX() methods. """
        raise NotImplementedError

    @property
    @abstractmethod
    def output(self) -> IOBase:
        """ fetches the binary stream that provides output.
            Callers can use the usual writeXXX() methods. """
        raise NotImplementedError

    @property
    @abstractmethod
    def open(self) -> bool:
        """ determines if this conduit is open. When open, the streams provided by
            input and output can be read from/written to."""
        raise NotImplementedError

    @abstractmethod
    def close(self):
        """
        Closes both the input and output streams. Closing must unblock a thread waiting to read.
        """
        raise NotImplementedError


class ConduitDecorator(Conduit):
    """
    A ConduitDecorator wraps another conduit and delegates to its methods.
    This allows subclasses to easily override some behaviors while keeping others
    unchanged.
    """

    def __init__(self, decorate: Conduit):
        self.decorate = decorate

    @property
    def target(self):
        return self.decorate.target

    def close(self):
        self.decorate.close()

    @property
    def input(self) -> IOBase:
        return self.decorate.input

    @property
    def output(self) -> IOBase:
        return self.decorate.output

    @property
    def open(self) -> bool:
        return self.decorate.open


class LineConduit(ConduitDecorator):
    """
    Reads and writes newline terminated text lines over a conduit.

    Lines are read and written as text without their terminator. Reading and writing may happen
    concurrently on different threads, but each direction must only be used by one thread.
    """

    def __init__(self, decorate: Conduit, encoding='utf-8', max_length=None):
        super().__init__(decorate)
        self.encoding = encoding
        self.max_length = max_length or max_line_length

    def read_line(self):
        """
        Reads the next line.
        :return: the line without its terminator, or None at the end of the stream.
        :raises IOError: if the line is longer than max_length
        """
        raw = self.input.readline(self.max_length)
        if not raw:
            return None
        if not raw.endswith(b"\n"):
            if len(raw) >= self.max_length:
                raise IOError("line exceeds %d bytes" % self.max_length)
        return raw.decode(self.encoding, errors='replace').rstrip("\r\n")

    def write_line(self, line: str):
        """ writes the line, adding the terminator if missing, and flushes it to the stream. """
        if not line.endswith("\n"):
            line += "\n"
        output = self.output
        output.write(line.encode(self.encoding))
        output.flush()


class DefaultConduit(Conduit):
    """ provides the conduit streams from specific read/write file-like types (which may be the same value) """

    def __init__(self, read=None, write=None):
        self._read = self._write = None
        self._closed = False
        self.set_streams(read, write)

    def set_streams(self, read, write=None):
        self._read = read
        self._write = write if write is not None else read

    @property
    def target(self):
        return self._read

    def close(self):
        self._closed = True
        self._write.close()
        self._read.close()

    @property
    def open(self):
        return not self._closed

    @property
    def input(self) -> IOBase:
        return self._read

    @property
    def output(self) -> IOBase:
        return self._write
