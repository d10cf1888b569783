"""
Stream classes used on top of a conduit: the text reader and writer views a session holds
while connected, and deque-backed byte streams used by the in-memory loopback peer.
"""

import codecs
import io
from collections import deque

from peerlink.conduit.base import Conduit

default_encoding = 'ascii'


class DequeStream(io.BufferedIOBase):

    def __init__(self, q: deque):
        super().__init__()
        self.q = q

    def close(self):
        self.q = None
        super().close()


class DequeReader(DequeStream):
    """
    A readable stream that pulls content from a deque of byte values.
    Returns an empty result when the deque is empty rather than blocking.
    """

    def readable(self):
        return True

    def read(self, count=-1):
        self._checkClosed()
        q = self.q
        if count is None or count < 0:
            count = len(q)
        return bytes(q.popleft() for _ in range(min(count, len(q))))


class DequeWriter(DequeStream):
    """
    A writable stream that pushes content to a deque.
    :param listener: optional callable notified after each write
    """
    def __init__(self, q: deque, listener=None):
        super().__init__(q)
        self.listener = listener

    def writable(self):
        return True

    def write(self, buf):
        self._checkClosed()
        data = bytes(buf)
        self.q.extend(data)
        if self.listener:
            self.listener(data)
        return len(data)


class ConduitReader:
    """
    The text view over a conduit's input. Decodes incrementally, so a multi-byte character split
    across two reads is still decoded correctly. Undecodable bytes are replaced.
    """

    def __init__(self, conduit: Conduit, encoding=default_encoding, errors='replace'):
        self.conduit = conduit
        self._decoder = codecs.getincrementaldecoder(encoding)(errors)
        self.closed = False

    def _check_closed(self):
        if self.closed:
            raise ValueError("read from a closed reader")

    def peek(self) -> bool:
        """ :return: True if there is input waiting. Never blocks. """
        self._check_closed()
        return self.conduit.data_available()

    def read(self, max_bytes) -> str:
        self._check_closed()
        data = self.conduit.read_available(max_bytes)
        return self._decoder.decode(data)

    def close(self):
        self.closed = True
        self.conduit = None


class ConduitWriter:
    """
    The text view over a conduit's output stream.
    Closing the writer detaches it; the underlying stream is closed by its owner.
    """

    def __init__(self, output: io.IOBase, encoding=default_encoding, errors='replace'):
        self.output = output
        self.encoding = encoding
        self.errors = errors
        self.closed = False

    def _check_closed(self):
        if self.closed:
            raise ValueError("write to a closed writer")

    def write(self, text: str):
        self._check_closed()
        self.output.write(text.encode(self.encoding, self.errors))

    def flush(self):
        self._check_closed()
        self.output.flush()

    def close(self):
        self.closed = True
        self.output = None
