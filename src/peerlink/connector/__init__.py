"""
The connector package defines the boundary to the transports that reach a peer: the Transport
interface, the Peer descriptor and the connection errors, with implementations for serial ports,
stream sockets (TCP and Bluetooth RFCOMM) and an in-memory loopback peer.

A transport can be thought of as a peer discovery and conduit factory.
"""
