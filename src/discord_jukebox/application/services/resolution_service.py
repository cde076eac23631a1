"""Song resolution service - tries resolver strategies in order."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from pydantic import ValidationError

from ...domain.shared.exceptions import ResolutionError
from ...domain.shared.messages import ErrorMessages, LogTemplates
from .playback_models import ResolutionOutcome

if TYPE_CHECKING:
    from ..interfaces.song_resolver import ResolverStrategy

logger = logging.getLogger(__name__)


class SongResolutionService:
    """Turns a raw query into a song using the first strategy that claims it.

    :meth:`resolve` never raises for a failed lookup; the failure reason is
    returned in the outcome so the command layer can report it.
    """

    def __init__(self, strategies: Sequence[ResolverStrategy]) -> None:
        self._strategies = list(strategies)

    @property
    def strategies(self) -> list[ResolverStrategy]:
        return list(self._strategies)

    def select(self, query: str) -> ResolverStrategy | None:
        for strategy in self._strategies:
            if strategy.matches(query):
                return strategy
        return None

    async def resolve(self, query: str, requested_by: str) -> ResolutionOutcome:
        query = query.strip()
        strategy = self.select(query) if query else None
        if strategy is None:
            return ResolutionOutcome(error=ErrorMessages.NO_STRATEGY_MATCHED.format(query=query))

        logger.debug(LogTemplates.RESOLVER_SELECTED, query, strategy.name)
        try:
            song = await strategy.resolve(query, requested_by)
        except ResolutionError as e:
            logger.warning(LogTemplates.RESOLVER_FAILED, query, e.message)
            return ResolutionOutcome(error=e.message, strategy=strategy.name)
        except ValidationError as e:
            logger.warning(LogTemplates.RESOLVER_FAILED, query, e)
            return ResolutionOutcome(
                error=ErrorMessages.RESOLVED_WITHOUT_URL.format(query=query),
                strategy=strategy.name,
            )
        except Exception:
            logger.exception(LogTemplates.RESOLVER_UNEXPECTED_ERROR, query)
            return ResolutionOutcome(
                error=ErrorMessages.LOOKUP_FAILED.format(query=query),
                strategy=strategy.name,
            )

        if not song.source_url:
            return ResolutionOutcome(
                error=ErrorMessages.RESOLVED_WITHOUT_URL.format(query=query),
                strategy=strategy.name,
            )
        return ResolutionOutcome(song=song, strategy=strategy.name)
