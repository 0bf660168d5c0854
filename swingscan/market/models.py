"""Market data models — quotes and universe membership returned by collaborators."""

from dataclasses import dataclass


@dataclass(frozen=True)
class IndexQuote:
    """Latest level of a broad market index."""

    name: str
    symbol: str
    price: float
    change_percent: float

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "price": round(self.price, 2),
            "changePercent": round(self.change_percent, 2),
        }


@dataclass(frozen=True)
class VolatilityQuote:
    name: str
    symbol: str
    value: float

    def to_dict(self) -> dict:
        return {"name": self.name, "symbol": self.symbol, "value": round(self.value, 2)}


@dataclass(frozen=True)
class UniverseMember:
    """One stock of a named universe."""

    symbol: str
    name: str
