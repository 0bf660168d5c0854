"""Error taxonomy — every failure the scanner can report carries a ``kind`` tag.

Validation errors are deterministic and raised before any computation or
network I/O.  Upstream errors come from the market data provider or the
universe resolver.  The orchestrator converts both into per-symbol error
records; anything outside this hierarchy is treated as a programming error.
"""

from typing import Any, Optional


class SwingScanError(Exception):
    """Base class for all anticipated scanner failures."""

    kind: str = "error"


# ── Validation ───────────────────────────────────────────────────────────


class ValidationError(SwingScanError, ValueError):
    """Input rejected before any work was attempted."""

    kind = "validation"


class TypeMismatchError(ValidationError):
    """A value (or container) has the wrong type."""

    kind = "type_mismatch"

    def __init__(self, message: str, field: str = "", value: Any = None) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class InvalidPeriodError(ValidationError):
    """An indicator period is non-positive, non-integer, or inconsistent."""

    kind = "invalid_period"

    def __init__(self, message: str, name: str = "period", value: Any = None) -> None:
        super().__init__(message)
        self.name = name
        self.value = value


class InsufficientDataError(ValidationError):
    """Fewer observations than the computation requires."""

    kind = "insufficient_data"

    def __init__(self, required: int, actual: int, noun: str = "prices") -> None:
        super().__init__(
            f"Insufficient data: need at least {required} {noun}, got {actual}"
        )
        self.required = required
        self.actual = actual


class MissingFieldError(ValidationError):
    """A price bar lacks one of high / low / close / volume."""

    kind = "missing_field"

    def __init__(self, index: int, field: str) -> None:
        super().__init__(
            f"Each data point must have high, low, close, and volume "
            f"properties (bar {index} is missing '{field}')"
        )
        self.index = index
        self.field = field


class InvalidOptionError(ValidationError):
    """A scan option is out of range or of the wrong type."""

    kind = "invalid_option"

    def __init__(self, message: str, option: str = "", value: Any = None) -> None:
        super().__init__(message)
        self.option = option
        self.value = value


# ── Upstream ─────────────────────────────────────────────────────────────


class UpstreamError(SwingScanError):
    """Failure reported by an external collaborator."""

    kind = "upstream"


class FetchError(UpstreamError):
    """Network or protocol failure while fetching market data."""

    kind = "fetch_error"

    def __init__(self, message: str, symbol: Optional[str] = None) -> None:
        super().__init__(message)
        self.symbol = symbol


class SymbolNotFoundError(FetchError):
    """The provider does not know the symbol."""

    kind = "not_found"

    def __init__(self, symbol: str) -> None:
        super().__init__(f"Symbol not found: {symbol}", symbol=symbol)


class EmptyDataError(FetchError):
    """The provider answered but returned no usable bars."""

    kind = "empty_data"

    def __init__(self, symbol: str) -> None:
        super().__init__(f"No price data returned for {symbol}", symbol=symbol)


class FetchTimeoutError(FetchError):
    """A symbol's fetch-and-score sequence exceeded its deadline."""

    kind = "timeout"

    def __init__(self, symbol: str, timeout_s: float) -> None:
        super().__init__(f"Timed out after {timeout_s}s", symbol=symbol)
        self.timeout_s = timeout_s


class UniverseNotFoundError(UpstreamError):
    """Unknown or empty stock universe."""

    kind = "universe_not_found"

    def __init__(self, name: str) -> None:
        super().__init__(f"Universe not found: {name}")
        self.name = name
