"""
Lookup client interface for dic.

The pipeline only depends on `LookupClient`; concrete clients (the Google
image search client, test doubles) implement `search` as a coroutine that
either returns the candidate results in source order or raises
`LookupFailedError`.
"""

from __future__ import annotations

import abc
from typing import List, Protocol, runtime_checkable

from dic.domain.models import SearchOptions, SearchResult


@runtime_checkable
class LookupClient(Protocol):
    """
    Common interface of every lookup backend.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier used in logs.
    """

    name: str

    async def search(self, key: str, options: SearchOptions) -> List[SearchResult]:
        """
        Resolve `key` to zero or more results.

        Parameters
        ----------
        key : str
            The lookup key taken from the input record.
        options : SearchOptions
            Filters forwarded to the service.

        Returns
        -------
        List[SearchResult]
            Results in the order the service ranked them; may be empty.

        Raises
        ------
        LookupFailedError
            On transport, authentication, or payload errors.
        """
        ...


class AbstractLookupClient(abc.ABC):
    """
    Optional ABC helper for class-based implementations.

    Subclasses should set `name` and implement `search`.
    """

    name: str

    @abc.abstractmethod
    async def search(
        self, key: str, options: SearchOptions
    ) -> List[SearchResult]:  # pragma: no cover - interface only
        """Run the lookup and return its results."""
        raise NotImplementedError


__all__ = ["LookupClient", "AbstractLookupClient"]
