from abc import abstractmethod

from peerlink.conduit.base import Conduit
from peerlink.support.mixins import CommonEqualityMixin


class ConnectorError(Exception):
    """ Indicates an error condition with a connection. """


class TransportUnavailableError(ConnectorError):
    """ There is no usable transport on this host, e.g. no Bluetooth adapter. """


class NoPeersFoundError(ConnectorError):
    """ Discovery found no peers. The caller may scan again later. """


class PeerNotFoundError(ConnectorError):
    """ The requested peer is not among the peers last discovered. """


class ConnectionBusyError(ConnectorError):
    """ A connection was requested while the session is not disconnected. """


class AlreadyConnectingError(ConnectionBusyError):
    """ A connection attempt is already in progress. """


class AlreadyConnectedError(ConnectionBusyError):
    """ The session is already connected. """


class ConnectionEstablishmentFailed(ConnectorError):
    """ The transport could not open a connection to the peer. The transport error is the cause. """


class NotConnectedError(ConnectorError):
    """ Indicates a connection is in the disconnected state when a connection is required. """


class TransportWriteError(ConnectorError):
    """ Writing to the peer failed. The connection has been closed. """


class TransportReadError(ConnectorError):
    """ Reading from the peer failed, or the peer closed the connection. """


class Peer(CommonEqualityMixin):
    """
    Describes a peer that a transport can connect to.

    :param name: the human readable name of the peer, e.g. the Bluetooth device name
    :param address: the transport address, e.g. a serial device, host:port or Bluetooth MAC
    :param resource: transport specific details needed to open the connection
    """
    def __init__(self, name, address, resource=None):
        self.name = name
        self.address = address
        self.resource = resource

    @property
    def display_name(self):
        """
        The identity shown to users and used to select the peer.
        >>> Peer('HC-06', '98:D3:31:F5:1A:2B').display_name
        'HC-06 [98:D3:31:F5:1A:2B]'
        """
        return "%s [%s]" % (self.name, self.address)

    def __hash__(self):
        return hash((self.name, self.address))

    def __str__(self):
        return self.display_name

    def __repr__(self):
        return "Peer(%r, %r)" % (self.name, self.address)


class Transport:
    """
    A transport knows how to find peers and open a conduit to one of them.
    """

    @property
    @abstractmethod
    def available(self) -> bool:
        """ Determines if this transport can be used on this host. """
        raise NotImplementedError

    @abstractmethod
    def peers(self):
        """
        :return: an iterable of the Peer instances currently reachable, in presentation order.
        """
        raise NotImplementedError

    @abstractmethod
    def open(self, peer: Peer) -> Conduit:
        """
        Opens a conduit to the peer. This may block for as long as the transport takes to
        negotiate the connection.
        Raises ConnectorError if the connection cannot be established.
        """
        raise NotImplementedError
