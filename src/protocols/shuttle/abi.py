"""Pure ABI helpers for shuttle contracts — no I/O.

Each read is described by a ``ContractFunction``: its canonical signature and
its return types. Selectors come from the keccak hash of the signature.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, is_address, to_checksum_address


@dataclass(frozen=True)
class ContractFunction:
    """A view function: canonical signature plus return types."""

    signature: str
    outputs: tuple[str, ...]

    @property
    def name(self) -> str:
        return self.signature.split("(", 1)[0]

    @property
    def inputs(self) -> tuple[str, ...]:
        """Argument types, e.g. ``balanceOf(address)`` → ``("address",)``."""
        args = self.signature[self.signature.index("(") + 1 : -1]
        return tuple(args.split(",")) if args else ()

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    def encode_call(self, *args: Any) -> bytes:
        """Build calldata: 4-byte selector followed by the encoded arguments."""
        if len(args) != len(self.inputs):
            raise TypeError(
                f"{self.signature} takes {len(self.inputs)} argument(s), got {len(args)}"
            )
        return self.selector + encode(list(self.inputs), list(args))

    def decode_result(self, data: bytes) -> tuple[Any, ...]:
        """Decode return data; raises ``eth_abi`` decoding errors on malformed input."""
        return tuple(decode(list(self.outputs), data))


def _view(signature: str, *outputs: str) -> ContractFunction:
    return ContractFunction(signature=signature, outputs=outputs or ("uint256",))


# Collateral vault
TOTAL_SUPPLY = _view("totalSupply()")
TOTAL_BALANCE = _view("totalBalance()")
TOTAL_ASSETS = _view("totalAssets()")
EXCHANGE_RATE = _view("exchangeRate()")
DEBT_RATIO = _view("debtRatio()")
LIQUIDATION_FEE = _view("liquidationFee()")
LIQUIDATION_INCENTIVE = _view("liquidationIncentive()")
LP_TOKEN_PRICE = _view("getLPTokenPrice()")
BALANCE_OF = _view("balanceOf(address)")
GET_BORROWER_POSITION = _view(
    "getBorrowerPosition(address)", "uint256", "uint256", "uint256"
)
GET_ACCOUNT_LIQUIDITY = _view("getAccountLiquidity(address)", "uint256", "uint256")

# Borrowable vault
TOTAL_BORROWS = _view("totalBorrows()")
RESERVE_FACTOR = _view("reserveFactor()")
UTILIZATION_RATE = _view("utilizationRate()")
SUPPLY_RATE = _view("supplyRate()")
BORROW_RATE = _view("borrowRate()")
USD_PRICE = _view("getUsdPrice()")
GET_BORROW_BALANCE = _view("getBorrowBalance(address)", "uint256", "uint256")
GET_LENDER_POSITION = _view(
    "getLenderPosition(address)", "uint256", "uint256", "uint256"
)

# Factory
SHUTTLES_DEPLOYED = _view("shuttlesDeployed()")
ALL_SHUTTLES = _view(
    "allShuttles(uint256)", "bool", "uint88", "address", "address", "uint96"
)


def normalize_address(address: str) -> str:
    """Return the EIP-55 checksum form of ``address``.

    Raises:
        ValueError: if ``address`` is not a 20-byte hex address.
    """
    if not is_address(address):
        raise ValueError(f"Invalid address: {address!r}")
    return to_checksum_address(address)
