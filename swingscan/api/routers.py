"""HTTP API routers — /universes, /scan, /scan/quick, /scan/deep, /score endpoints.

No business logic. Delegates to the scanner and the scoring engine.
"""

import logging
from dataclasses import replace
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query

from swingscan.errors import UniverseNotFoundError, ValidationError
from swingscan.models.scan import ScanOptions
from swingscan.strategy.scoring import coerce_bars, score_stock
from swingscan.strategy.signals import describe_signals

logger = logging.getLogger("swingscan")
router = APIRouter()

# ── Shared state (set during app startup) ────────────────────────────────

_scanner = None            # Set via configure_routers()
_universe_resolver = None  # Set via configure_routers()

# Body key → ScanOptions field
_OPTION_KEYS = {
    "days": "days",
    "interval": "interval",
    "min_score": "min_score",
    "minScore": "min_score",
    "max_results": "max_results",
    "maxResults": "max_results",
    "include_indicators": "include_indicators",
    "includeIndicators": "include_indicators",
}


def configure_routers(scanner=None, universe_resolver=None) -> None:
    """Inject dependencies from the application startup.

    Args:
        scanner: A ``Scanner`` instance (or duck-type for tests).
        universe_resolver: A ``JsonUniverseResolver`` (or duck-type).
    """
    global _scanner, _universe_resolver  # noqa: PLW0603
    _scanner = scanner
    _universe_resolver = universe_resolver


def _require_scanner():
    if _scanner is None:
        raise HTTPException(status_code=503, detail="Scanner not configured")
    return _scanner


def _options_from_body(body: dict, base: Optional[ScanOptions] = None) -> ScanOptions:
    fields: dict[str, Any] = {}
    for key, attr in _OPTION_KEYS.items():
        if key in body:
            fields[attr] = body[key]
    return replace(base or ScanOptions(), **fields)


async def _run_scan(stocks, options: ScanOptions) -> dict:
    scanner = _require_scanner()
    try:
        report = await scanner.scan(stocks, options)
    except UniverseNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(
            status_code=422, detail={"error": str(exc), "kind": exc.kind}
        )
    return report.to_dict()


# ── Universes ────────────────────────────────────────────────────────────


@router.get("/universes")
async def get_universes():
    """List configured stock universes with descriptions and sizes."""
    if _universe_resolver is None:
        return {"universes": []}
    out = []
    for name in _universe_resolver.available_universes():
        try:
            size = len(_universe_resolver.get_universe(name))
        except UniverseNotFoundError:
            size = 0
        out.append(
            {
                "name": name,
                "description": _universe_resolver.describe(name),
                "stocks": size,
            }
        )
    return {"universes": out}


# ── Scans ────────────────────────────────────────────────────────────────


@router.post("/scan")
async def post_scan(body: dict):
    """Scan ``symbols`` (list) or a ``universe`` (name) with optional options."""
    symbols = body.get("symbols")
    universe = body.get("universe")
    if symbols is None and not universe:
        raise HTTPException(
            status_code=422,
            detail={
                "error": "Provide either 'symbols' or 'universe'",
                "kind": "invalid_option",
            },
        )
    options = _options_from_body(body)
    logger.info("API scan requested: %s", universe or f"{len(symbols)} symbol(s)")
    return await _run_scan(symbols if symbols is not None else universe, options)


@router.post("/scan/quick")
async def post_quick_scan(universe: str = Query("NIFTY50")):
    return await _run_scan(universe, ScanOptions.quick())


@router.post("/scan/deep")
async def post_deep_scan(universe: str = Query("NIFTY50")):
    return await _run_scan(universe, ScanOptions.deep())


# ── Scoring ──────────────────────────────────────────────────────────────


@router.post("/score")
async def post_score(body: dict):
    """Score a single OHLCV series posted as ``{"bars": [...]}``.

    The score payload is extended with a ``signals`` block of labelled
    indicator readings.
    """
    try:
        bars = coerce_bars(body.get("bars"))
        breakdown = score_stock(bars)
    except ValidationError as exc:
        raise HTTPException(
            status_code=422, detail={"error": str(exc), "kind": exc.kind}
        )
    payload = breakdown.to_dict()
    payload["signals"] = describe_signals(bars, breakdown.indicators)
    return payload
