"""
Events fired by a ConnectionSession on its `events` source.
"""
from peerlink.support.mixins import CommonEqualityMixin


class SessionEvent(CommonEqualityMixin):
    """ base class for session events. """
    def __init__(self, session):
        self.session = session


class StatusChangedEvent(SessionEvent):
    """
    A human readable status update, such as "Connected to HC-06 [98:D3:31:F5:1A:2B]".
    :param error: the exception behind an error status, None otherwise
    """
    def __init__(self, session, message, is_error=False, error=None):
        super().__init__(session)
        self.message = message
        self.is_error = is_error
        self.error = error


class MessageReceivedEvent(SessionEvent):
    """ A complete message arrived from the peer. """
    def __init__(self, session, message):
        super().__init__(session)
        self.message = message


class ConnectionStateChangedEvent(SessionEvent):
    """ The session moved to a new ConnectionState. """
    def __init__(self, session, state):
        super().__init__(session)
        self.state = state


def session_listener(on_status=None, on_message=None, on_state=None):
    """
    Adapts plain callbacks to a session event handler.

    >>> received = []
    >>> handler = session_listener(on_message=received.append)
    >>> handler(MessageReceivedEvent(None, 'hello'))
    >>> received
    ['hello']

    :param on_status: called with (message, is_error)
    :param on_message: called with the message text
    :param on_state: called with the new ConnectionState
    """
    def handler(event):
        if isinstance(event, StatusChangedEvent):
            on_status and on_status(event.message, event.is_error)
        elif isinstance(event, MessageReceivedEvent):
            on_message and on_message(event.message)
        elif isinstance(event, ConnectionStateChangedEvent):
            on_state and on_state(event.state)
    return handler
