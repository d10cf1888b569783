import logging

from peerlink.conduit.base import Conduit
from peerlink.conduit.loopback import LoopbackConduit, echo
from peerlink.connector.base import ConnectorError, Peer, Transport

logger = logging.getLogger(__name__)


class LoopbackTransport(Transport):
    """
    A transport to in-memory peers. Each open() creates a fresh LoopbackConduit, which is kept in
    `conduits` so the peer side can be scripted.

    :param peers: the peers offered. Defaults to a single echoing peer.
    :param responder: passed to each conduit, see LoopbackConduit
    :param fail_with: when set, open() raises ConnectorError with this message
    """
    def __init__(self, peers=None, responder=echo, fail_with=None):
        self._peers = list(peers) if peers is not None else [Peer('echo', 'loopback')]
        self.responder = responder
        self.fail_with = fail_with
        self.conduits = []

    @property
    def available(self) -> bool:
        return True

    def peers(self):
        return list(self._peers)

    def open(self, peer: Peer) -> Conduit:
        if self.fail_with:
            raise ConnectorError(self.fail_with)
        conduit = LoopbackConduit(peer.display_name, self.responder)
        self.conduits.append(conduit)
        logger.info("opened loopback to %s" % peer)
        return conduit
