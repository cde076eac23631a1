"""Port interface for turning a user query into a playable song."""

from __future__ import annotations

from abc import ABC, abstractmethod

from discord_jukebox.domain.music.entities import Song


class ResolverStrategy(ABC):
    """One way of resolving a query, e.g. a direct link or a free-text search.

    Strategies are tried in order; the first whose :meth:`matches` returns
    True owns the query.
    """

    name: str = "resolver"

    @abstractmethod
    def matches(self, query: str) -> bool:
        """Return True if this strategy handles the query."""
        ...

    @abstractmethod
    async def resolve(self, query: str, requested_by: str) -> Song:
        """Resolve the query into a song, raising ResolutionError on failure."""
        ...
