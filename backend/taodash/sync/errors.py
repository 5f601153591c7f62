"""Fetch error hierarchy."""


class FetchError(Exception):
    """A fetch against the remote price source failed. Recoverable."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class NetworkError(FetchError):
    """Connection failure, timeout, or non-success HTTP status."""


class ParseError(FetchError):
    """Response body could not be decoded into the expected shape."""


class AbortedError(Exception):
    """The fetch was cancelled. Never surfaced to the reconciler."""
