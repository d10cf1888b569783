"""
Newline framing for text exchanged with a peripheral.

A message is the text between two delimiters, trimmed of surrounding whitespace. Blank
messages are never delivered, and a trailing message without its delimiter stays pending
until more input arrives (or is dropped with the framer when the connection ends).
"""

delimiter = '\n'


class LineFramer:
    """
    Reassembles delimited messages from text arriving in arbitrary chunks.

    >>> framer = LineFramer()
    >>> framer.feed("AB\\nC")
    ['AB']
    >>> framer.feed("D\\n\\n  \\nEF")
    ['CD']
    >>> framer.pending
    'EF'
    """

    def __init__(self, delimiter=delimiter):
        if len(delimiter) != 1:
            raise ValueError("delimiter must be a single character, not %r" % delimiter)
        self.delimiter = delimiter
        self._pending = ''

    @property
    def pending(self) -> str:
        """ the text received since the last delimiter. Never contains the delimiter. """
        return self._pending

    def feed(self, chunk: str) -> list:
        """
        Appends a chunk of received text and returns the messages it completes, in arrival order.
        """
        data = self._pending + chunk
        messages = []
        index = data.find(self.delimiter)
        while index != -1:
            message = data[:index].strip()
            data = data[index + 1:]
            if message:
                messages.append(message)
            index = data.find(self.delimiter)
        self._pending = data
        return messages

    def reset(self):
        """ drops any partial message. """
        self._pending = ''


def encode_line(message: str, delimiter=delimiter) -> str:
    """
    Terminates an outbound message with exactly one delimiter.
    >>> encode_line("LED ON")
    'LED ON\\n'
    """
    return message + delimiter
