"""NFT ownership checks against the chain's JSON-RPC endpoint."""

import logging
from typing import Optional

import httpx

from arcade.config import get_settings

logger = logging.getLogger(__name__)

# keccak256("balanceOf(address)")[:4]
BALANCE_OF_SELECTOR = "0x70a08231"


def encode_balance_of(wallet_address: str) -> str:
    """ABI-encode a ``balanceOf(address)`` call."""
    return BALANCE_OF_SELECTOR + wallet_address.lower().removeprefix("0x").rjust(64, "0")


class NftVerifier:
    """Answers whether a wallet holds at least one token of the gate collection."""

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        contract_address: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.rpc_url = rpc_url or settings.chain_rpc_url
        self.contract_address = contract_address or settings.nft_contract_address
        self.timeout = timeout or settings.rpc_timeout_seconds
        self._transport = transport

    async def balance_of(self, wallet_address: str) -> int:
        """
        Get the wallet's token balance in the gate collection.

        Raises:
            httpx.HTTPError: If the RPC call fails at the transport level
            ValueError: If the RPC answers with an error or a malformed result
        """
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "eth_call",
            "params": [
                {"to": self.contract_address, "data": encode_balance_of(wallet_address)},
                "latest",
            ],
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()

        if not isinstance(body, dict):
            raise ValueError(f"Unexpected RPC response: {body!r}")

        if "error" in body:
            raise ValueError(f"RPC error: {body['error']}")
        result = body.get("result")
        if not isinstance(result, str):
            raise ValueError(f"Unexpected RPC result: {result!r}")
        return int(result, 16) if result not in ("0x", "") else 0

    async def owns_nft(self, wallet_address: str) -> bool:
        """Check ownership. Any RPC failure counts as not owning."""
        logger.info(f"Checking NFT ownership for {wallet_address} (contract {self.contract_address})")
        try:
            balance = await self.balance_of(wallet_address)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"NFT verification failed for {wallet_address}: {e}")
            return False

        has_nft = balance > 0
        logger.info(
            f"NFT balance for {wallet_address}: {balance} -> {'APPROVED' if has_nft else 'REJECTED'}"
        )
        return has_nft


# Singleton instance
_nft_verifier: Optional[NftVerifier] = None


def get_nft_verifier() -> NftVerifier:
    """Get singleton NFT verifier."""
    global _nft_verifier
    if _nft_verifier is None:
        _nft_verifier = NftVerifier()
    return _nft_verifier
