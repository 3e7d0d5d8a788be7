"""Exceptions raised by the reader layer.

Readers never raise on malformed mail; these are reserved for API misuse.
"""


class ReaderError(Exception):
    """Base class for reader-layer errors."""


class DuplicatePushback(ReaderError):
    """A chunk was pushed back while another one was still pending."""


class InvalidArgument(ReaderError, ValueError):
    """Bad chunk size, empty pushback, or an input that is not bytes."""
