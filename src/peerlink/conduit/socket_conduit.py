import select
import socket

from peerlink.conduit import base


class SocketConduit(base.Conduit):
    """
    A conduit that provides communication via a stream socket (TCP or Bluetooth RFCOMM).
    :param sock The open, connected socket
    """
    def __init__(self, sock: socket.socket):
        """
        :param sock: the client socket that represents the connection
        :type sock: socket
        """
        self.sock = sock
        # unbuffered, so that select() on the socket tells the whole story
        self.read = sock.makefile('rb', buffering=0)
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

    def data_available(self) -> bool:
        readable, _, _ = select.select([self.sock], [], [], 0)
        return bool(readable)

    def read_available(self, max_bytes) -> bytes:
        data = self.read.read(max_bytes)
        if not data:
            raise EOFError("connection closed by peer")
        return data

    def close(self):
        try:
            self.read.close()
            self.write.close()    # flushes, so may fail on a broken connection
        finally:
            try:
                self.sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass    # the peer may have closed the socket already
            finally:
                self.sock.close()
