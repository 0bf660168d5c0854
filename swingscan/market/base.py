"""Collaborator interfaces the scanner depends on.

Any object with these methods can be handed to ``Scanner``; the default
implementations are ``YahooChartClient`` and ``JsonUniverseResolver``.
"""

from typing import Protocol

from swingscan.market.models import IndexQuote, UniverseMember, VolatilityQuote
from swingscan.strategy.models import PriceBar


class MarketDataProvider(Protocol):
    """Source of OHLCV history and market context quotes."""

    async def fetch_ohlcv(
        self, symbol: str, days: int, interval: str = "1d"
    ) -> list[PriceBar]:
        """Return at most *days* bars, oldest first.

        Raises ``SymbolNotFoundError``, ``EmptyDataError`` or ``FetchError``.
        """
        ...

    async def fetch_index_quote(self, name: str) -> IndexQuote:
        ...

    async def fetch_volatility_index(self, name: str) -> VolatilityQuote:
        ...


class UniverseResolver(Protocol):
    """Named lists of stocks."""

    def get_universe(self, name: str) -> list[UniverseMember]:
        """Raises ``UniverseNotFoundError`` for unknown or empty universes."""
        ...

    def describe(self, name: str) -> str:
        ...

    def available_universes(self) -> list[str]:
        ...
