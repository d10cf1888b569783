import logging
import socket

from peerlink.conduit.base import Conduit
from peerlink.conduit.socket_conduit import SocketConduit
from peerlink.connector.base import ConnectorError, Peer, Transport

logger = logging.getLogger(__name__)

# the RFCOMM channel the serial port profile is usually registered on
default_rfcomm_channel = 1


def tcp_peer(host, port, name=None):
    """
    Describes a TCP server as a peer.
    >>> tcp_peer('192.168.4.1', 8080).display_name
    '192.168.4.1 [192.168.4.1:8080]'
    >>> tcp_peer('192.168.4.1', 8080, 'rover').display_name
    'rover [192.168.4.1:8080]'
    """
    return Peer(name or host, "%s:%d" % (host, port), (host, port))


def rfcomm_peer(address, name=None, channel=default_rfcomm_channel):
    """
    Describes a Bluetooth device reached over RFCOMM as a peer.
    >>> rfcomm_peer('98:D3:31:F5:1A:2B', 'HC-06').display_name
    'HC-06 [98:D3:31:F5:1A:2B]'
    """
    return Peer(name or address, address, (address, channel))


class SocketTransport(Transport):
    """
    Reaches peers through a connected stream socket.

    :param family: the socket address family
    :param proto: the socket protocol
    :param known_peers: peers that are always offered, with the socket address as the peer resource
    :param discovery: optional server discovery contributing further peers. Must provide servers()
    :param connect_timeout: seconds to wait for the connection to be accepted, or None to wait forever
    """
    def __init__(self, family=socket.AF_INET, proto=0, known_peers=(), discovery=None, connect_timeout=5):
        self.family = family
        self.proto = proto
        self.known_peers = list(known_peers)
        self.discovery = discovery
        self.connect_timeout = connect_timeout

    @property
    def available(self) -> bool:
        if self.family is None:
            return False
        try:
            socket.socket(self.family, socket.SOCK_STREAM, self.proto).close()
            return True
        except OSError as e:
            logger.warning("socket family %s is not usable: %s" % (self.family, e))
            return False

    def peers(self):
        peers = list(self.known_peers)
        if self.discovery is not None:
            peers += self.discovery.servers()
        return peers

    def open(self, peer: Peer) -> Conduit:
        if self.family is None:
            raise ConnectorError("this socket family is not supported on this platform")
        sock = None
        try:
            sock = socket.socket(self.family, socket.SOCK_STREAM, self.proto)
            sock.settimeout(self.connect_timeout)
            sock.connect(peer.resource)
            sock.settimeout(None)
        except OSError as e:
            if sock is not None:
                sock.close()
            logger.warning("error opening socket to %s: %s" % (peer, e))
            raise ConnectorError(str(e)) from e
        logger.info("opened socket to %s" % peer)
        return SocketConduit(sock)


def rfcomm_transport(devices=(), channel=default_rfcomm_channel, connect_timeout=None):
    """
    Creates a transport over Bluetooth RFCOMM sockets, which are supported by Linux and Windows builds
    of Python. Where they are not supported, the transport reports itself unavailable.

    :param devices: (name, address) pairs of the paired devices to offer as peers
    :param channel: the RFCOMM channel to connect to
    """
    family = getattr(socket, 'AF_BLUETOOTH', None)
    proto = getattr(socket, 'BTPROTO_RFCOMM', 0)
    peers = [rfcomm_peer(address, name, channel) for name, address in devices]
    return SocketTransport(family, proto, peers, connect_timeout=connect_timeout)
