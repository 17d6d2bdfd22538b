"""Chain client protocol — contract read abstraction."""
from typing import Protocol


class ChainClient(Protocol):
    """Abstract interface for read-only contract calls."""

    async def eth_call(self, to: str, data: bytes, block: str = "latest") -> bytes: ...
