"""Error taxonomy for position reads."""
from __future__ import annotations


class PositionError(Exception):
    """Base class for every failure surfaced by a position read."""


class MarketNotFound(PositionError, LookupError):
    """Market id outside the registry's registered range."""

    def __init__(self, market_id: int, total_markets: int | None = None) -> None:
        self.market_id = market_id
        self.total_markets = total_markets
        if total_markets is None:
            super().__init__(f"Market {market_id} not found")
        else:
            super().__init__(
                f"Market {market_id} not found ({total_markets} markets registered)"
            )


class UpstreamReadFailure(PositionError):
    """A vault or registry read failed or returned malformed data."""

    def __init__(self, target: str, function: str, reason: str) -> None:
        self.target = target
        self.function = function
        self.reason = reason
        super().__init__(f"Read {function} on {target} failed: {reason}")


class AccumulationOverflow(PositionError, OverflowError):
    """A running sum left the unsigned 256-bit range."""
