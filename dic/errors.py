"""dic exception hierarchy."""

from __future__ import annotations


class DicError(Exception):
    """Base exception for all dic errors."""


class ConfigurationError(DicError):
    """Settings are missing or inconsistent."""


class CacheError(DicError):
    """Cache backend operation failed."""


class LookupFailedError(DicError):
    """The external lookup service could not answer."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(f"lookup for {key!r} failed: {message}")


class StreamError(DicError):
    """The record stream is no longer usable."""


class InputStreamError(StreamError):
    """Reading the next input record failed."""


class OutputStreamError(StreamError):
    """Writing a record to the output stream failed."""


__all__ = [
    "DicError",
    "ConfigurationError",
    "CacheError",
    "LookupFailedError",
    "StreamError",
    "InputStreamError",
    "OutputStreamError",
]
