from abc import abstractmethod
from io import IOBase


class Conduit:
    """
    A conduit allows two-way communication with a peer. It provides a file-like input endpoint and
    a file-like output endpoint, and a non-blocking way to find out if input is waiting.
    """

    @property
    @abstractmethod
    def target(self):
        raise NotImplementedError

    @property
    @abstractmethod
    def input(self) -> IOBase:
        """ fetches the I/O stream that provides input. """
        raise NotImplementedError

    @property
    @abstractmethod
    def output(self) -> IOBase:
        """ fetches the I/O stream that provides output.
            Callers use write() and flush(). """
        raise NotImplementedError

    @property
    @abstractmethod
    def open(self) -> bool:
        """ determines if this conduit is open. When open, the streams provided by
            input and output can be read from/written to."""
        raise NotImplementedError

    @abstractmethod
    def data_available(self) -> bool:
        """ Determines without blocking if input is waiting to be read. """
        raise NotImplementedError

    @abstractmethod
    def read_available(self, max_bytes) -> bytes:
        """
        Reads at most max_bytes of the waiting input. Only blocks when called without data_available()
        being true first.
        Raises EOFError when the peer has closed its end.
        """
        raise NotImplementedError

    @abstractmethod
    def close(self):
        """
        Closes both the input and output streams. Closing a closed conduit does nothing.
        """
        raise NotImplementedError


class DefaultConduit(Conduit):
    """ provides the conduit streams from buffered read/write file-like types (which may be the same value) """

    def __init__(self, read=None, write=None, target=None):
        self._read = self._write = None
        self._target = target
        self.set_streams(read, write)

    def set_streams(self, read, write=None):
        self._read = read
        self._write = write if write is not None else read

    @property
    def target(self):
        return self._target

    def close(self):
        self._write.close()
        self._read.close()

    @property
    def open(self):
        return not (self._read.closed or self._write.closed)

    def data_available(self):
        return bool(self._read.peek(1))

    def read_available(self, max_bytes):
        return self._read.read1(max_bytes)

    @property
    def input(self) -> IOBase:
        return self._read

    @property
    def output(self) -> IOBase:
        return self._write
