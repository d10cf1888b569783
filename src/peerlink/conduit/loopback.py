"""
An in-memory conduit with a scriptable peer on the other end.
Stands in for a peripheral in tests and demos.
"""
import logging
from collections import deque
from io import BufferedReader, BufferedWriter

from peerlink.conduit.base import DefaultConduit
from peerlink.protocol.framing import LineFramer
from peerlink.protocol.io import DequeReader, DequeWriter

logger = logging.getLogger(__name__)


def echo(line):
    """ a responder that sends each line straight back. """
    return line


class LoopbackConduit(DefaultConduit):
    """
    Data written to the output is delivered to the peer; data the peer sends is read from the input.

    :param target: a name for the peer, used in logging
    :param responder: optional callable invoked with each complete line the peer receives.
        A non-empty result is sent back to the host as a line.
    """

    def __init__(self, target='loopback', responder=None):
        self.to_host = deque()
        self.to_peer = deque()
        self.responder = responder
        self._peer_framer = LineFramer()
        super().__init__(BufferedReader(DequeReader(self.to_host)),
                         BufferedWriter(DequeWriter(self.to_peer, self._peer_received)),
                         target)

    def _peer_received(self, data):
        if not self.responder:
            return
        for line in self._peer_framer.feed(data.decode('ascii', 'replace')):
            logger.debug("%s received %r" % (self.target, line))
            reply = self.responder(line)
            if reply:
                self.peer_send(reply + '\n')

    def peer_send(self, data):
        """ Sends data from the peer to the host. Text is encoded as ASCII. """
        if isinstance(data, str):
            data = data.encode('ascii')
        self.to_host.extend(data)

    def peer_received(self) -> bytes:
        """ Retrieves and removes everything the host has sent the peer so far. """
        q = self.to_peer
        return bytes(q.popleft() for _ in range(len(q)))
