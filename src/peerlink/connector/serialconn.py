import logging

import serial
from serial import SerialException

from peerlink.conduit.base import Conduit
from peerlink.conduit.serial_conduit import SerialConduit, serial_port_info
from peerlink.connector.base import ConnectorError, Peer, Transport

logger = logging.getLogger(__name__)

# the factory default of HC-05/HC-06 modules
default_baudrate = 9600


def port_name(info):
    """ a readable name for a port, falling back to the device name when there is no description. """
    description = info.description
    return description if description and description != 'n/a' else info.name


class SerialTransport(Transport):
    """
    Reaches peers through local serial ports.

    :param port_filter: optional predicate over ListPortInfo selecting the ports offered as peers,
        e.g. is_bluetooth_port
    :param serial_args: passed to serial.serial_for_url when opening a port. Defaults to 9600 baud
        and non-blocking reads.
    """
    def __init__(self, port_filter=None, **serial_args):
        self.port_filter = port_filter
        self.serial_args = dict(baudrate=default_baudrate, timeout=0)
        self.serial_args.update(serial_args)

    @property
    def available(self) -> bool:
        try:
            serial_port_info()
            return True
        except (OSError, SerialException) as e:
            logger.warning("serial ports cannot be enumerated: %s" % e)
            return False

    def peers(self):
        for info in serial_port_info():
            if self.port_filter is None or self.port_filter(info):
                yield Peer(port_name(info), info.device, info)

    def open(self, peer: Peer) -> Conduit:
        """
        Opens the serial port named by the peer address. The address may also be a pyserial URL,
        such as loop:// or socket://host:port.
        """
        try:
            ser = serial.serial_for_url(peer.address, do_not_open=True, **self.serial_args)
            ser.open()
        except (SerialException, ValueError) as e:
            logger.warning("error opening serial port %s: %s" % (peer.address, e))
            raise ConnectorError(str(e)) from e
        logger.info("opened serial port %s" % peer.address)
        return SerialConduit(ser)
