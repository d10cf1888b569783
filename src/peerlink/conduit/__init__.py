"""
The conduit package provides an abstraction of a bi-directional byte stream to a peer.
Concrete implementations include serial ports, stream sockets and an in-memory loopback.

Zeroconf server discovery finds TCP peers advertised on the local network.
"""
