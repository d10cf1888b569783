"""
A line terminal for a peripheral: prints the messages it sends and sends the lines typed on stdin.

    peerlink-terminal --list
    peerlink-terminal --serial /dev/rfcomm0
    peerlink-terminal --peer "HC-06 [/dev/rfcomm0]"
    peerlink-terminal --tcp 192.168.4.1:8080
    peerlink-terminal --rfcomm 98:D3:31:F5:1A:2B
"""

import argparse
import logging
import sys
import threading
from queue import Empty, Queue

from peerlink.conduit.serial_conduit import is_bluetooth_port
from peerlink.conduit.server_discovery import TCPServerDiscovery
from peerlink.connector.base import ConnectorError, Peer
from peerlink.connector.serialconn import SerialTransport, default_baudrate
from peerlink.connector.socketconn import SocketTransport, rfcomm_peer, rfcomm_transport, tcp_peer, \
    default_rfcomm_channel
from peerlink.discovery import PeerDirectory
from peerlink.events import session_listener
from peerlink.poll_loop import PollLoop
from peerlink.session import ConnectionSession, ConnectionState

logger = logging.getLogger(__name__)


def parse_host_port(text):
    """
    >>> parse_host_port('192.168.4.1:8080')
    ('192.168.4.1', 8080)
    """
    host, sep, port = text.rpartition(':')
    if not sep or not host:
        raise argparse.ArgumentTypeError("expected host:port, got %r" % text)
    try:
        return host, int(port)
    except ValueError:
        raise argparse.ArgumentTypeError("invalid port in %r" % text) from None


def build_parser():
    parser = argparse.ArgumentParser(prog='peerlink-terminal', description=__doc__.split('\n')[1])
    target = parser.add_mutually_exclusive_group()
    target.add_argument('--serial', metavar='PORT', help='serial port or pyserial URL to connect to')
    target.add_argument('--tcp', metavar='HOST:PORT', type=parse_host_port, help='TCP server to connect to')
    target.add_argument('--rfcomm', metavar='ADDRESS', help='Bluetooth address to connect to over RFCOMM')
    target.add_argument('--peer', metavar='IDENTITY', help='a peer identity as shown by --list')
    parser.add_argument('--list', action='store_true', help='list the peers and exit')
    parser.add_argument('--baud', type=int, default=default_baudrate, help='serial baud rate')
    parser.add_argument('--bluetooth-only', action='store_true', help='only offer Bluetooth serial ports')
    parser.add_argument('--channel', type=int, default=default_rfcomm_channel, help='RFCOMM channel')
    parser.add_argument('--zeroconf', metavar='SUBTYPE', help='discover TCP peers advertised as _SUBTYPE._tcp')
    parser.add_argument('-v', '--verbose', action='store_true', help='log connection details')
    return parser


def build_transport(args):
    if args.rfcomm:
        return rfcomm_transport([(args.rfcomm, args.rfcomm)], args.channel)
    if args.tcp or args.zeroconf:
        known = [tcp_peer(*args.tcp)] if args.tcp else []
        discovery = TCPServerDiscovery(args.zeroconf) if args.zeroconf else None
        return SocketTransport(known_peers=known, discovery=discovery)
    port_filter = is_bluetooth_port if args.bluetooth_only else None
    return SerialTransport(port_filter, baudrate=args.baud)


def select_peer(args, directory: PeerDirectory) -> Peer:
    if args.serial:
        return Peer(args.serial, args.serial)
    if args.tcp:
        return tcp_peer(*args.tcp)
    if args.rfcomm:
        return rfcomm_peer(args.rfcomm, channel=args.channel)
    directory.scan()
    return directory.resolve(args.peer)


def read_lines(stream, lines: Queue):
    """ pushes each line read from the stream to the queue, then None at end of input. """
    for line in stream:
        lines.put(line.rstrip('\r\n'))
    lines.put(None)


class Terminal:
    """
    Connects a session to stdin/stdout. Runs until the input ends or the connection is lost.
    """
    def __init__(self, session: ConnectionSession, loop: PollLoop, out=sys.stdout, err=sys.stderr):
        self.session = session
        self.loop = loop
        self.out = out
        self.err = err
        self.lines = Queue()
        session.events.add(session_listener(self.on_status, self.on_message, self.on_state))
        self._was_connected = False

    def on_status(self, message, is_error):
        print(('error: ' if is_error else '') + message, file=self.err)

    def on_message(self, message):
        print(message, file=self.out)

    def on_state(self, state):
        if state is ConnectionState.CONNECTED:
            self._was_connected = True
        elif state is ConnectionState.DISCONNECTED:
            self.loop.stop_event.set()

    def send_pending(self):
        """ sends the lines typed so far. :return: False at end of input """
        while True:
            try:
                line = self.lines.get_nowait()
            except Empty:
                return True
            if line is None:
                return False
            try:
                self.session.send(line)
            except ConnectorError as e:
                print('error: %s' % e, file=self.err)

    def run(self, peer: Peer):
        self.session.connect(peer)
        while self.loop.running():
            self.loop.tick()
            if self.session.connected and not self.send_pending():
                break
            self.loop.stop_event.wait(self.loop.interval)
        self.session.disconnect()
        return 0 if self._was_connected else 1


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format='%(asctime)s %(name)s %(levelname)s %(message)s')

    transport = build_transport(args)
    try:
        return run_terminal(args, transport)
    finally:
        discovery = getattr(transport, 'discovery', None)
        discovery is None or discovery.close()


def run_terminal(args, transport):
    directory = PeerDirectory(transport)
    try:
        if args.list:
            for identity in directory.scan():
                print(identity)
            return 0
        if not (args.serial or args.tcp or args.rfcomm or args.peer):
            build_parser().error('one of --list, --serial, --tcp, --rfcomm or --peer is required')
        peer = select_peer(args, directory)
    except ConnectorError as e:
        print('error: %s' % e, file=sys.stderr)
        return 1

    session = ConnectionSession(transport)
    terminal = Terminal(session, PollLoop(session))
    reader = threading.Thread(target=read_lines, args=(sys.stdin, terminal.lines), name='peerlink-stdin')
    reader.daemon = True
    reader.start()
    try:
        return terminal.run(peer)
    except KeyboardInterrupt:
        session.disconnect()
        return 0


if __name__ == '__main__':  # pragma: no cover
    sys.exit(main())
