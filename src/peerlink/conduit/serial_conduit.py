"""
Implements a conduit over a serial port.

Bluetooth SPP modules such as the HC-05/HC-06 show up as serial ports once bound
(/dev/rfcomm0 on Linux, /dev/cu.* on macOS, an outgoing COM port on Windows), so this is
the usual way to reach them.
"""

import serial
from serial.tools import list_ports

from peerlink.conduit.base import Conduit


class SerialConduit(Conduit):
    """
    A conduit that provides comms via a serial port.
    The serial port is used as both the input and the output stream.
    """

    def __init__(self, ser: serial.Serial):
        self.ser = ser

    @property
    def target(self):
        return self.ser

    @property
    def input(self):
        return self.ser

    @property
    def output(self):
        return self.ser

    @property
    def open(self) -> bool:
        return self.ser.is_open

    def data_available(self) -> bool:
        return self.ser.in_waiting > 0

    def read_available(self, max_bytes) -> bytes:
        count = min(max_bytes, self.ser.in_waiting)
        return self.ser.read(count) if count > 0 else b''

    def close(self):
        self.ser.close()


def serial_port_info():
    """
    :return: a tuple of ListPortInfo for every serial port on this host
    """
    return tuple(list_ports.comports())


def serial_ports():
    """
    Returns a generator for all available serial port device names.
    """
    for port in serial_port_info():
        yield port.device


def is_bluetooth_port(info) -> bool:
    """
    Determines if a port is a Bluetooth serial link, from its device name or hardware id.
    >>> from serial.tools.list_ports_common import ListPortInfo
    >>> is_bluetooth_port(ListPortInfo('/dev/rfcomm0'))
    True
    >>> is_bluetooth_port(ListPortInfo('/dev/ttyUSB0'))
    False
    """
    text = ' '.join(str(part or '') for part in (info.device, info.description, info.hwid)).lower()
    return 'rfcomm' in text or 'bluetooth' in text or 'bthenum' in text
