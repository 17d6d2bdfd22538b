"""EVM JSON-RPC client with endpoint fallback."""
import logging
import ssl
from typing import Any

import aiohttp
import certifi
from eth_utils import to_hex

from ...config import ChainConfig

logger = logging.getLogger(__name__)


class EvmClient:
    """Read-only EVM RPC client with automatic endpoint fallback."""

    def __init__(self, config: ChainConfig) -> None:
        if not config.rpc_endpoints:
            raise ValueError("EvmClient needs at least one RPC endpoint")
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.current_rpc_index = 0
        self._request_id = 0

    def _next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make RPC call with fallback to alternative endpoints.

        Endpoints are tried in turn, starting from the last one that answered.
        An endpoint that succeeds after a failover becomes the new default.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": params,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json()
                        if "error" in result:
                            raise RuntimeError(f"RPC Error: {result['error']}")

                        if rpc_index != self.current_rpc_index:
                            logger.info("Switched to RPC endpoint: %s", rpc_url)
                            self.current_rpc_index = rpc_index

                        return result.get("result")
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed on %s: %s", rpc_url, method, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

        raise RuntimeError(f"All RPC endpoints failed. Last error: {last_error}")

    async def eth_call(self, to: str, data: bytes, block: str = "latest") -> bytes:
        """Execute a read-only contract call and return the raw return data."""
        result = await self.rpc_call(
            "eth_call", [{"to": to, "data": to_hex(data)}, block]
        )
        if not isinstance(result, str) or not result.startswith("0x"):
            raise ValueError(f"Malformed eth_call result: {result!r}")
        return bytes.fromhex(result[2:])

    async def block_number(self) -> int:
        """Latest block height."""
        result = await self.rpc_call("eth_blockNumber", [])
        return int(result, 16)
