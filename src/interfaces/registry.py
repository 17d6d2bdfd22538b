"""Market registry protocol — market id to vault pair lookup."""
from typing import Protocol

from ..models import Market


class MarketRegistry(Protocol):
    """Indexed store of markets; valid ids are ``0 <= id < total_markets()``."""

    async def total_markets(self) -> int: ...

    async def market(self, market_id: int) -> Market: ...
