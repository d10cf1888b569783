import argparse
import socket
import unittest
from io import StringIO
from queue import Queue
from unittest.mock import Mock, patch

from hamcrest import assert_that, is_, calling, raises, instance_of, contains_string

from peerlink.conduit.serial_conduit import is_bluetooth_port
from peerlink.connector.base import NotConnectedError, Peer
from peerlink.connector.loopbackconn import LoopbackTransport
from peerlink.connector.serialconn import SerialTransport
from peerlink.connector.socketconn import SocketTransport, tcp_peer, rfcomm_peer
from peerlink.events import session_listener
from peerlink.poll_loop import PollLoop
from peerlink.session import ConnectionSession, inline_establisher
from peerlink.terminal import Terminal, build_parser, build_transport, main, parse_host_port, read_lines, \
    select_peer


def parse(*argv):
    return build_parser().parse_args(argv)


class ParseTest(unittest.TestCase):

    def test_host_port(self):
        assert_that(parse_host_port('rover.local:23'), is_(('rover.local', 23)))

    def test_host_port_invalid(self):
        for text in ('rover.local', ':23', 'rover.local:telnet'):
            assert_that(calling(parse_host_port).with_args(text), raises(argparse.ArgumentTypeError))

    def test_tcp(self):
        assert_that(parse('--tcp', '192.168.4.1:8080').tcp, is_(('192.168.4.1', 8080)))

    def test_defaults(self):
        args = parse('--serial', '/dev/rfcomm0')
        assert_that(args.baud, is_(9600))
        assert_that(args.channel, is_(1))
        assert_that(args.list, is_(False))

    @patch('sys.stderr', new_callable=StringIO)
    def test_targets_are_exclusive(self, stderr):
        assert_that(calling(parse).with_args('--serial', 'COM3', '--tcp', 'a:1'), raises(SystemExit))


class BuildTransportTest(unittest.TestCase):

    def test_serial(self):
        transport = build_transport(parse('--serial', '/dev/rfcomm0', '--baud', '38400'))
        assert_that(transport, is_(instance_of(SerialTransport)))
        assert_that(transport.serial_args['baudrate'], is_(38400))
        assert_that(transport.port_filter, is_(None))

    def test_bluetooth_only(self):
        transport = build_transport(parse('--list', '--bluetooth-only'))
        assert_that(transport.port_filter, is_(is_bluetooth_port))

    def test_tcp(self):
        transport = build_transport(parse('--tcp', '192.168.4.1:8080'))
        assert_that(transport, is_(instance_of(SocketTransport)))
        assert_that(transport.family, is_(socket.AF_INET))
        assert_that(transport.peers(), is_([tcp_peer('192.168.4.1', 8080)]))

    @patch('peerlink.terminal.TCPServerDiscovery')
    def test_zeroconf(self, discovery):
        transport = build_transport(parse('--list', '--zeroconf', 'rover'))
        discovery.assert_called_once_with('rover')
        assert_that(transport.discovery, is_(discovery.return_value))

    def test_rfcomm(self):
        transport = build_transport(parse('--rfcomm', '98:D3:31:F5:1A:2B', '--channel', '2'))
        assert_that(transport.family, is_(getattr(socket, 'AF_BLUETOOTH', None)))
        assert_that(transport.peers()[0].resource, is_(('98:D3:31:F5:1A:2B', 2)))


class SelectPeerTest(unittest.TestCase):

    def test_serial(self):
        assert_that(select_peer(parse('--serial', 'COM3'), Mock()), is_(Peer('COM3', 'COM3')))

    def test_tcp(self):
        assert_that(select_peer(parse('--tcp', 'a:1'), Mock()), is_(tcp_peer('a', 1)))

    def test_rfcomm(self):
        peer = select_peer(parse('--rfcomm', '98:D3:31:F5:1A:2B'), Mock())
        assert_that(peer, is_(rfcomm_peer('98:D3:31:F5:1A:2B')))

    def test_identity(self):
        directory = Mock()
        peer = select_peer(parse('--peer', 'HC-06 [/dev/rfcomm0]'), directory)
        directory.scan.assert_called_once_with()
        directory.resolve.assert_called_once_with('HC-06 [/dev/rfcomm0]')
        assert_that(peer, is_(directory.resolve.return_value))


class ReadLinesTest(unittest.TestCase):

    def test_lines_then_end(self):
        lines = Queue()
        read_lines(StringIO("LED ON\r\nSTATUS\n"), lines)
        assert_that([lines.get_nowait() for _ in range(3)], is_(["LED ON", "STATUS", None]))


class TerminalTest(unittest.TestCase):

    def setUp(self):
        self.out = StringIO()
        self.err = StringIO()

    def create(self, transport):
        session = ConnectionSession(transport, inline_establisher)
        return Terminal(session, PollLoop(session, interval=0.001), self.out, self.err)

    def test_echo_session(self):
        sut = self.create(LoopbackTransport())
        # end the input once the reply has been printed
        sut.session.events += session_listener(on_message=lambda message: sut.lines.put(None))
        sut.lines.put("ping")
        assert_that(sut.run(Peer('echo', 'loopback')), is_(0))
        assert_that(self.out.getvalue(), is_("ping\n"))
        assert_that(self.err.getvalue(), is_("Connecting to echo...\nConnected to echo [loopback]\nDisconnected\n"))
        assert_that(sut.session.connected, is_(False))

    def test_connection_fails(self):
        sut = self.create(LoopbackTransport(fail_with="host is down"))
        assert_that(sut.run(Peer('echo', 'loopback')), is_(1))
        assert_that(self.err.getvalue(), contains_string("error: Connection to echo [loopback] failed: host is down"))

    def test_send_errors_are_reported(self):
        session = Mock()
        session.send.side_effect = NotConnectedError("not connected")
        sut = Terminal(session, Mock(), self.out, self.err)
        sut.lines.put("x")
        assert_that(sut.send_pending(), is_(True))
        assert_that(self.err.getvalue(), is_("error: not connected\n"))

    def test_end_of_input(self):
        sut = Terminal(Mock(), Mock(), self.out, self.err)
        assert_that(sut.send_pending(), is_(True))
        sut.lines.put(None)
        assert_that(sut.send_pending(), is_(False))


class MainTest(unittest.TestCase):

    @patch('sys.stdout', new_callable=StringIO)
    @patch('peerlink.terminal.build_transport', return_value=LoopbackTransport())
    def test_list(self, transport, stdout):
        assert_that(main(['--list']), is_(0))
        assert_that(stdout.getvalue(), is_("echo [loopback]\n"))

    @patch('sys.stderr', new_callable=StringIO)
    @patch('peerlink.terminal.build_transport', return_value=LoopbackTransport(peers=[]))
    def test_list_no_peers(self, transport, stderr):
        assert_that(main(['--list']), is_(1))
        assert_that(stderr.getvalue(), is_("error: no peers found\n"))

    @patch('sys.stderr', new_callable=StringIO)
    @patch('peerlink.terminal.build_transport', return_value=LoopbackTransport())
    def test_unknown_peer(self, transport, stderr):
        assert_that(main(['--peer', 'HC-06 [COM3]']), is_(1))
        assert_that(stderr.getvalue(), is_("error: peer HC-06 [COM3] not found\n"))

    @patch('sys.stderr', new_callable=StringIO)
    @patch('peerlink.terminal.build_transport', return_value=LoopbackTransport())
    def test_target_required(self, transport, stderr):
        assert_that(calling(main).with_args([]), raises(SystemExit))

    @patch('sys.stdout', new_callable=StringIO)
    @patch('peerlink.terminal.build_transport')
    def test_discovery_closed(self, build, stdout):
        transport = Mock()
        transport.peers.return_value = [Peer('rover', '192.168.4.1:8080')]
        build.return_value = transport
        assert_that(main(['--list', '--zeroconf', 'rover']), is_(0))
        transport.discovery.close.assert_called_once_with()

    @patch('sys.stderr', new_callable=StringIO)
    @patch('peerlink.terminal.build_transport')
    def test_discovery_closed_when_no_peers(self, build, stderr):
        transport = Mock()
        transport.peers.return_value = []
        build.return_value = transport
        assert_that(main(['--peer', 'rover [192.168.4.1:8080]', '--zeroconf', 'rover']), is_(1))
        transport.discovery.close.assert_called_once_with()

    @patch('sys.stderr', new_callable=StringIO)
    @patch('peerlink.terminal.build_transport')
    def test_discovery_closed_on_usage_error(self, build, stderr):
        transport = Mock()
        build.return_value = transport
        assert_that(calling(main).with_args(['--zeroconf', 'rover']), raises(SystemExit))
        transport.discovery.close.assert_called_once_with()
