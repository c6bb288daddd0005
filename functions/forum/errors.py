"""
Caller-facing errors raised by the store engine.
"""


class ForumError(Exception):
    """Base class for errors the HTTP layer maps to a response."""


class ValidationError(ForumError):
    """The request payload cannot be accepted as-is."""


class NotFoundError(ForumError):
    """The referenced question does not exist."""


class StoreError(ForumError):
    """Every configured storage backend rejected the write."""
