"""Stock universes loaded from a JSON file.

File shape::

    {"universes": {"NIFTY50": {"description": "...",
                               "stocks": [{"symbol": "RELIANCE.NS",
                                           "name": "Reliance Industries"}]}}}
"""

import json
import logging
from pathlib import Path
from typing import Optional

from swingscan.errors import UniverseNotFoundError
from swingscan.market.models import UniverseMember

logger = logging.getLogger("swingscan.market")


class JsonUniverseResolver:
    """Resolves universe names against a JSON file, read once on first use."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._universes: Optional[dict] = None

    def _load(self) -> dict:
        if self._universes is None:
            with self._path.open(encoding="utf-8") as fh:
                data = json.load(fh)
            self._universes = data.get("universes") or {}
            logger.debug(
                "Loaded %d universe(s) from %s", len(self._universes), self._path
            )
        return self._universes

    def get_universe(self, name: str) -> list[UniverseMember]:
        """Members of *name*, in file order."""
        entry = self._load().get(name)
        stocks = (entry or {}).get("stocks") or []
        if not stocks:
            raise UniverseNotFoundError(name)
        members = [
            UniverseMember(symbol=s["symbol"], name=s.get("name") or s["symbol"])
            for s in stocks
        ]
        logger.debug("Universe %s resolved to %d stocks", name, len(members))
        return members

    def describe(self, name: str) -> str:
        entry = self._load().get(name)
        if entry is None:
            raise UniverseNotFoundError(name)
        return entry.get("description", "")

    def available_universes(self) -> list[str]:
        return list(self._load().keys())
