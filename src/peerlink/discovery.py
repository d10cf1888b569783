"""
    Peer discovery. A PeerDirectory asks a transport for the peers it can reach and keeps the
    selection map from display identity to peer. Each scan is compared with the previous one and
    events are posted as peers appear and disappear.
"""

import logging

from peerlink.connector.base import NoPeersFoundError, Peer, PeerNotFoundError, Transport, \
    TransportUnavailableError
from peerlink.support.events import EventSource
from peerlink.support.mixins import CommonEqualityMixin

logger = logging.getLogger(__name__)


class PeerEvent(CommonEqualityMixin):
    """ Notification about a peer. """
    def __init__(self, source, key, peer):
        """
        :param source   The PeerDirectory that posted this event
        :param key      The display identity of the peer
        :param peer     The Peer itself
        """
        self.source = source
        self.key = key
        self.peer = peer


class PeerAvailableEvent(PeerEvent):
    """ Signifies that a peer is available. """


class PeerUnavailableEvent(PeerEvent):
    """ Signifies that a peer has become unavailable. """


class PeerDirectory:
    """
    The known peers of a transport, keyed by display identity.

    Two peers with the same display identity collide: the one listed later by the transport
    replaces the earlier one in the map, keeping the earlier position. The collision is logged.
    """

    def __init__(self, transport: Transport):
        self.transport = transport
        self.listeners = EventSource()
        self.previous = {}      # the peers found by the last scan

    def _fetch_available(self) -> dict:
        available = {}
        for peer in self.transport.peers():
            key = peer.display_name
            if key in available:
                logger.warning("peer identity %s is not unique, %r replaces %r" % (key, peer, available[key]))
            available[key] = peer
        return available

    def _changed_events(self, available: dict) -> list:
        """
        Computes which peers have been added, removed or changed.
        :return: the events to send, removals before additions for a changed peer
        """
        events = []
        for key in list(self.previous) + [k for k in available if k not in self.previous]:
            previous = self.previous.get(key)
            current = available.get(key)
            if previous is not None and previous != current:
                logger.info("unavailable peer: %s" % key)
                events.append(PeerUnavailableEvent(self, key, previous))
            if current is not None and previous != current:
                logger.info("available peer: %s" % key)
                events.append(PeerAvailableEvent(self, key, current))
        return events

    def scan(self) -> list:
        """
        Refreshes the peers from the transport.
        :return: the display identities of the peers, in the transport's order
        Raises TransportUnavailableError when the transport cannot be used on this host,
            and NoPeersFoundError when no peers were found.
        """
        if not self.transport.available:
            raise TransportUnavailableError("%s is not available on this host" % type(self.transport).__name__)
        available = self._fetch_available()
        events = self._changed_events(available)
        self.previous = available
        self.listeners.fire_all(events)
        if not available:
            raise NoPeersFoundError("no peers found")
        return list(available)

    def list_peers(self) -> list:
        """ :return: the display identities found by the last scan """
        return list(self.previous)

    def resolve(self, identity) -> Peer:
        """
        Retrieves the peer selected by its display identity.
        Raises PeerNotFoundError if the last scan did not find it.
        """
        try:
            return self.previous[identity]
        except KeyError:
            raise PeerNotFoundError("peer %s not found" % identity) from None
