"""
The connection session: connects to one peer at a time over a transport, reassembles the
messages the peer sends and writes the messages the caller sends.

The session is driven by its caller. poll() must be called regularly (see PollLoop); it applies
the outcome of a pending connection attempt and reads whatever input is waiting, never blocking.
Opening the connection can take a long time, so it is handed to an establisher, by default a
worker thread. The worker only opens the conduit; the result is applied by the session itself.
Each attempt carries the session epoch at the time it started, so a connection that completes
after the attempt was cancelled is closed rather than adopted.

All public operations are serialized by a per-session lock.
"""

import logging
import sys
import threading
from enum import Enum
from collections import deque
from queue import Empty, Queue

from peerlink.config.config import configure_module
from peerlink.connector.base import AlreadyConnectedError, AlreadyConnectingError, ConnectionEstablishmentFailed, \
    NotConnectedError, Peer, Transport, TransportReadError, TransportWriteError
from peerlink.events import ConnectionStateChangedEvent, MessageReceivedEvent, StatusChangedEvent
from peerlink.protocol.framing import LineFramer, encode_line
from peerlink.protocol.io import ConduitReader, ConduitWriter
from peerlink.support.events import EventSource

logger = logging.getLogger(__name__)

# the most bytes read by one poll()
read_size = 1024
# the text encoding used on the wire
encoding = 'ascii'

configure_module(sys.modules[__name__], 'peerlink')


class ConnectionState(Enum):
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'
    DISCONNECTING = 'disconnecting'


def thread_establisher(establish, *args):
    """ runs the connection attempt on a daemon thread. """
    t = threading.Thread(target=establish, args=args, name='peerlink-connect')
    t.daemon = True
    t.start()
    return t


def inline_establisher(establish, *args):
    """ runs the connection attempt on the calling thread, so connect() returns once it completes. """
    establish(*args)


class ConnectionSession:
    """
    Manages the connection to a single peer.

    Fires StatusChangedEvent, MessageReceivedEvent and ConnectionStateChangedEvent on `events`.

    :param transport:   the Transport used to open connections
    :param establisher: callable(establish, *args) that arranges for establish(*args) to be called,
        on any thread. Defaults to thread_establisher.
    :param read_size:   the most bytes read by one poll()
    :param encoding:    the text encoding used on the wire
    """

    def __init__(self, transport: Transport, establisher=thread_establisher, read_size=None, encoding=None):
        self.transport = transport
        self.events = EventSource()
        self.read_size = read_size or sys.modules[__name__].read_size
        self.encoding = encoding or sys.modules[__name__].encoding
        self._establisher = establisher
        self._lock = threading.RLock()
        self._results = Queue()     # (epoch, conduit, error) from connection attempts
        self._state = ConnectionState.DISCONNECTED
        self._epoch = 0
        self._peer = None
        self._framer = None
        self._inbox = deque()     # framed messages not yet delivered
        self._conduit = None
        self._input = None
        self._output = None
        self._reader = None
        self._writer = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def peer(self) -> Peer:
        """ the peer of the current or last connection attempt """
        return self._peer

    @property
    def epoch(self) -> int:
        """ increases with every connection attempt and every disconnect """
        return self._epoch

    @property
    def conduit(self):
        return self._conduit

    @property
    def framer(self) -> LineFramer:
        return self._framer

    @property
    def resources(self):
        """ the resources held for the connection, in the order they were acquired """
        return self._conduit, self._output, self._input, self._writer, self._reader

    def connect(self, peer: Peer):
        """
        Starts connecting to the peer. The outcome is reported by a StatusChangedEvent.
        With the default establisher the connection completes on a later poll().
        Raises AlreadyConnectingError or AlreadyConnectedError unless disconnected.
        """
        with self._lock:
            if self._state is ConnectionState.CONNECTING:
                raise AlreadyConnectingError("already connecting to %s" % self._peer)
            if self._state is ConnectionState.CONNECTED:
                raise AlreadyConnectedError("already connected to %s" % self._peer)
            self._epoch += 1
            self._peer = peer
            self._set_state(ConnectionState.CONNECTING)
            self._status("Connecting to %s..." % peer.name)
            self._establisher(self._establish, self._epoch, peer)
            self._deliver_results()

    def _establish(self, epoch, peer):
        """ Opens the conduit. Called by the establisher, possibly on another thread. """
        conduit = error = None
        try:
            conduit = self.transport.open(peer)
        except Exception as e:
            error = e
        with self._lock:
            if epoch != self._epoch:
                logger.debug("connection attempt %d to %s was cancelled" % (epoch, peer))
                conduit is None or self._release(conduit, 'conduit')
            else:
                self._results.put((epoch, conduit, error))

    def _deliver_results(self):
        """ applies finished connection attempts. Results of superseded attempts are released. """
        while True:
            try:
                epoch, conduit, error = self._results.get_nowait()
            except Empty:
                return
            if epoch != self._epoch or self._state is not ConnectionState.CONNECTING:
                logger.debug("discarding result of superseded connection attempt %d" % epoch)
                conduit is None or self._release(conduit, 'conduit')
            elif error is not None:
                self._connection_failed(error)
            else:
                self._adopt(conduit)

    def _adopt(self, conduit):
        self._conduit = conduit
        try:
            self._output = conduit.output
            self._input = conduit.input
            self._writer = ConduitWriter(self._output, self.encoding)
            self._reader = ConduitReader(conduit, self.encoding)
        except (OSError, LookupError, ValueError) as e:
            self._connection_failed(e)
            return
        self._framer = LineFramer()
        self._set_state(ConnectionState.CONNECTED)
        logger.info("connected to %s" % self._peer)
        self._status("Connected to %s" % self._peer.display_name)

    def _connection_failed(self, error):
        failure = ConnectionEstablishmentFailed("Connection to %s failed: %s" % (self._peer.display_name, error))
        failure.__cause__ = error
        self._teardown(str(failure), failure)

    def disconnect(self) -> bool:
        """
        Closes the connection, or cancels the connection attempt in progress.
        Does nothing when already disconnected.
        :return: True if the session was connected or connecting
        """
        with self._lock:
            if self._state is ConnectionState.DISCONNECTED:
                return False
            self._epoch += 1
            try:
                self._teardown("Disconnected")
            finally:
                self._deliver_results()
            return True

    def send(self, message: str) -> bool:
        """
        Sends a message to the peer, followed by the delimiter, and flushes it.
        An empty message is not sent.
        :return: True if the message was sent
        Raises NotConnectedError unless connected, and TransportWriteError when the write fails,
        in which case the session is disconnected.
        """
        with self._lock:
            if not message:
                return False
            if self._state is not ConnectionState.CONNECTED:
                raise NotConnectedError("not connected")
            try:
                self._writer.write(encode_line(message))
                self._writer.flush()
            except (OSError, ValueError) as e:
                failure = TransportWriteError("Send failed: %s" % e)
                failure.__cause__ = e
                self._teardown(str(failure), failure)
                raise failure from e
            return True

    def poll(self) -> list:
        """
        Applies a finished connection attempt, then reads the input waiting, if any.
        Safe to call in any state. Transport errors disconnect the session and are reported
        by a StatusChangedEvent; they are not raised.
        Messages left undelivered because a handler raised are delivered first on the next poll.
        :return: the messages delivered by this poll, also fired as MessageReceivedEvent
        """
        with self._lock:
            self._deliver_results()
            if self._state is not ConnectionState.CONNECTED:
                return []
            delivered = self._deliver_messages()
            if self._state is not ConnectionState.CONNECTED:
                return delivered
            try:
                if not self._reader.peek():
                    return delivered
                text = self._reader.read(self.read_size)
            except (OSError, EOFError, ValueError) as e:
                failure = TransportReadError("Connection to %s lost: %s" % (self._peer.display_name, e))
                failure.__cause__ = e
                self._teardown(str(failure), failure)
                return delivered
            self._inbox.extend(self._framer.feed(text))
            return delivered + self._deliver_messages()

    def _deliver_messages(self):
        """ fires the waiting messages in order, stopping when a handler ends the connection. """
        epoch = self._epoch
        delivered = []
        while self._inbox and self._epoch == epoch and self._state is ConnectionState.CONNECTED:
            message = self._inbox.popleft()
            delivered.append(message)
            self.events.fire(MessageReceivedEvent(self, message))
        return delivered

    def _teardown(self, message, error=None):
        """
        releases the connection resources and then reports the move to DISCONNECTED.
        DISCONNECTING is held only while the resources are released, so listeners never see it.
        Exceptions raised by listeners are logged, so teardown never raises.
        """
        self._state = ConnectionState.DISCONNECTING
        self._release_all()
        self._set_state(ConnectionState.DISCONNECTED, guarded=True)
        if error is None:
            logger.info("disconnected from %s" % self._peer)
        self._status(message, error, guarded=True)

    def _release_all(self):
        """ closes each resource in the reverse order of acquisition, whatever happens to the others. """
        for name, resource in (('reader', self._reader), ('writer', self._writer), ('input stream', self._input),
                               ('output stream', self._output), ('conduit', self._conduit)):
            if resource is not None:
                self._release(resource, name)
        self._reader = self._writer = self._input = self._output = self._conduit = None
        self._framer = None
        self._inbox.clear()

    @staticmethod
    def _release(resource, name):
        try:
            resource.close()
        except Exception as e:
            logger.debug("error closing %s: %s" % (name, e))

    def _set_state(self, state, guarded=False):
        if state is not self._state:
            self._state = state
            self._fire(ConnectionStateChangedEvent(self, state), guarded)

    def _status(self, message, error=None, guarded=False):
        if error is not None:
            logger.warning(message)
        else:
            logger.info(message)
        self._fire(StatusChangedEvent(self, message, error is not None, error), guarded)

    def _fire(self, event, guarded):
        """ fires the event. When guarded, every handler is called and their exceptions are logged. """
        if not guarded:
            self.events.fire(event)
            return
        for handler in self.events.handlers():
            try:
                handler(event)
            except Exception as e:
                logger.exception("%s handler failed: %s" % (type(event).__name__, e))
