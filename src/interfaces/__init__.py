"""Protocol interfaces for the shuttle position monitor."""
from .chain import ChainClient
from .notifier import Notifier
from .registry import MarketRegistry
from .vaults import BorrowableVault, CollateralVault

__all__ = [
    "BorrowableVault",
    "ChainClient",
    "CollateralVault",
    "MarketRegistry",
    "Notifier",
]
