"""
Lookup package for dic.

Re-exports the client interface and the concrete Google image search client
so downstream code can import from `dic.lookup` directly.
"""

from dic.lookup.abstract import AbstractLookupClient, LookupClient
from dic.lookup.google import GoogleImageSearch

__all__ = [
    "AbstractLookupClient",
    "LookupClient",
    "GoogleImageSearch",
]
