"""

Peripheral line links

- Conduit: abstraction of a bi-directional byte channel to a peer. Combines an input and an output
  stream with a non-blocking check for waiting input.
- Transport: finds peers and opens conduits to them
 - local serial ports (including bound Bluetooth SPP links)
 - TCP servers, optionally discovered with mDNS
 - Bluetooth RFCOMM sockets
 - an in-memory loopback peer

- PeerDirectory - scans a transport and keeps the map from display identity
  ("name [address]") to peer, posting PeerAvailableEvent / PeerUnavailableEvent as peers change.
- LineFramer - reassembles newline delimited messages from text arriving in arbitrary pieces.
- ConnectionSession - connects to one peer at a time, owns the conduit and the framer while
  connected and releases everything on every path back to disconnected. Messages, status and
  state changes are fired on session.events.
- PollLoop - calls ConnectionSession.poll() every tick.


## Threading

Everything runs on the caller's thread except opening a connection, which can block for
seconds while the peer negotiates. The session hands that to a worker thread and picks up the
result on a later poll(). Each attempt is stamped with the session epoch, and a connection that
arrives after a disconnect is closed instead of being adopted.

Session operations hold a per-session lock, so a PollLoop running on its own thread and a
foreground caller can share a session.
"""

__version__ = '0.1.0'
