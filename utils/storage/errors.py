"""
Exceptions raised by the storage client layer.

Transport and protocol failures share one type. The wire contract carries no
structured error code, so callers only get the message.
"""

from typing import Optional


class StorageRequestError(Exception):
    """
    A storage API call failed.

    The message is the server's response body verbatim for non-2xx replies, or
    the underlying transport error's message when no response was received.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def __str__(self):
        return self.message


class UnknownProviderError(KeyError):
    """Raised when a provider identifier is not in the registry."""

    def __init__(self, provider):
        self.provider = provider
        super().__init__(provider)

    def __str__(self):
        return f"Unknown storage provider: {self.provider!r}"
