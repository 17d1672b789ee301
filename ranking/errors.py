"""
Errors raised by the ranking pipeline.
"""


class SerializationError(ValueError):
    """A response record holds a value that cannot be encoded as JSON."""
