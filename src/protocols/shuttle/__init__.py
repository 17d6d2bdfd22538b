"""Shuttle lending protocol: collateral/borrowable vault pairs on EVM chains."""
from .registry import FactoryRegistry, StaticRegistry, build_registry
from .vaults import EvmBorrowableVault, EvmCollateralVault

__all__ = [
    "EvmBorrowableVault",
    "EvmCollateralVault",
    "FactoryRegistry",
    "StaticRegistry",
    "build_registry",
]
