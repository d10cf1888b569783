import unittest
from collections import deque
from io import BytesIO
from unittest.mock import Mock

from hamcrest import assert_that, is_, calling, raises, none

from peerlink.protocol.io import ConduitReader, ConduitWriter, DequeReader, DequeWriter


class DequeReaderTest(unittest.TestCase):

    def test_read_empty_does_not_block(self):
        sut = DequeReader(deque())
        assert_that(sut.read(10), is_(b''))

    def test_read_count(self):
        q = deque(b'abcdef')
        sut = DequeReader(q)
        assert_that(sut.read(4), is_(b'abcd'))
        assert_that(sut.read(4), is_(b'ef'))
        assert_that(len(q), is_(0))

    def test_read_all(self):
        sut = DequeReader(deque(b'abc'))
        assert_that(sut.read(), is_(b'abc'))

    def test_closed(self):
        sut = DequeReader(deque(b'abc'))
        sut.close()
        assert_that(sut.closed, is_(True))
        assert_that(calling(sut.read).with_args(1), raises(ValueError))


class DequeWriterTest(unittest.TestCase):

    def test_write_extends_deque(self):
        q = deque()
        sut = DequeWriter(q)
        assert_that(sut.write(b'ab'), is_(2))
        sut.write(bytearray(b'c'))
        assert_that(bytes(q), is_(b'abc'))

    def test_listener_notified(self):
        listener = Mock()
        sut = DequeWriter(deque(), listener)
        sut.write(memoryview(b'xyz'))
        listener.assert_called_once_with(b'xyz')

    def test_closed(self):
        sut = DequeWriter(deque())
        sut.close()
        assert_that(calling(sut.write).with_args(b'a'), raises(ValueError))


class ConduitReaderTest(unittest.TestCase):

    def test_peek_delegates(self):
        conduit = Mock()
        conduit.data_available.return_value = False
        sut = ConduitReader(conduit)
        assert_that(sut.peek(), is_(False))
        conduit.data_available.assert_called_once_with()

    def test_read_decodes(self):
        conduit = Mock()
        conduit.read_available.return_value = b'OK\n'
        sut = ConduitReader(conduit)
        assert_that(sut.read(16), is_('OK\n'))
        conduit.read_available.assert_called_once_with(16)

    def test_undecodable_bytes_are_replaced(self):
        conduit = Mock()
        conduit.read_available.return_value = b'T=\xb021'
        sut = ConduitReader(conduit)
        assert_that(sut.read(16), is_('T=�21'))

    def test_multibyte_character_split_across_reads(self):
        conduit = Mock()
        conduit.read_available.side_effect = [b'21\xc2', b'\xb0C']
        sut = ConduitReader(conduit, 'utf-8')
        assert_that(sut.read(3), is_('21'))
        assert_that(sut.read(3), is_('°C'))

    def test_unknown_encoding(self):
        assert_that(calling(ConduitReader).with_args(Mock(), 'no-such-encoding'), raises(LookupError))

    def test_closed(self):
        conduit = Mock()
        sut = ConduitReader(conduit)
        sut.close()
        assert_that(sut.conduit, is_(none()))
        assert_that(calling(sut.peek), raises(ValueError))
        assert_that(calling(sut.read).with_args(1), raises(ValueError))
        conduit.close.assert_not_called()


class ConduitWriterTest(unittest.TestCase):

    def test_write_encodes(self):
        output = BytesIO()
        sut = ConduitWriter(output)
        sut.write('LED ON\n')
        sut.flush()
        assert_that(output.getvalue(), is_(b'LED ON\n'))

    def test_unencodable_is_replaced(self):
        output = BytesIO()
        sut = ConduitWriter(output)
        sut.write('21°')
        assert_that(output.getvalue(), is_(b'21?'))

    def test_flush_delegates(self):
        output = Mock()
        sut = ConduitWriter(output)
        sut.flush()
        output.flush.assert_called_once_with()

    def test_close_detaches(self):
        output = Mock()
        sut = ConduitWriter(output)
        sut.close()
        output.close.assert_not_called()
        assert_that(calling(sut.write).with_args('x'), raises(ValueError))
        assert_that(calling(sut.flush), raises(ValueError))
