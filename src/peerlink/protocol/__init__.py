"""
Message framing on top of a conduit: newline delimited text, and the reader and writer views
that decode and encode it.
"""
