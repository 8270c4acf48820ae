from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class NetworkType(Enum):
    MAINNET = "mainnet"
    SEPOLIA = "sepolia"
    LOCAL = "local"  # hardhat / anvil mainnet fork


@dataclass(frozen=True)
class ProtocolAddresses:
    """Contract addresses per network for the protocols the looper touches."""

    chain_id: int
    aave_pool: str
    weth: str
    morpho_blue: str | None  # Not deployed on every testnet

    def require_morpho(self) -> str:
        if self.morpho_blue is None:
            raise ValueError(f"Morpho Blue is not configured for chain {self.chain_id}")
        return self.morpho_blue


MAINNET_ADDRESSES = ProtocolAddresses(
    chain_id=1,
    aave_pool="0x87870Bca3F3fD6335C3F4ce8392D69350B4fA4E2",
    weth="0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
    morpho_blue="0xBBBBBbbBBb9cC5e90e3b3Af64bdAF62C37EEFFCb",
)

SEPOLIA_ADDRESSES = ProtocolAddresses(
    chain_id=11155111,
    aave_pool="0x6Ae43d3271ff6888e7Fc43Fd7321a503ff738951",
    # WETH as listed in the Aave V3 Sepolia market.
    weth="0xC558DBdd856501FCd9aaF1E62eae57A9F0629a3c",
    morpho_blue=None,
)

# A local fork mirrors mainnet state, so it uses mainnet addresses.
LOCAL_ADDRESSES = ProtocolAddresses(
    chain_id=31337,
    aave_pool=MAINNET_ADDRESSES.aave_pool,
    weth=MAINNET_ADDRESSES.weth,
    morpho_blue=MAINNET_ADDRESSES.morpho_blue,
)


class NetworkDetector:
    """Helpers for detecting network and resolving protocol addresses."""

    @staticmethod
    def detect(rpc_url: str | None) -> NetworkType:
        """Detect network from RPC URL (simple heuristic).

        No URL means the demo default of mainnet, matching the wallet's
        DFNS network.
        """
        url = (rpc_url or "").lower()
        if "sepolia" in url:
            return NetworkType.SEPOLIA
        if "localhost" in url or "127.0.0.1" in url:
            return NetworkType.LOCAL
        return NetworkType.MAINNET

    @staticmethod
    def get_addresses(network: NetworkType) -> ProtocolAddresses:
        if network == NetworkType.SEPOLIA:
            return SEPOLIA_ADDRESSES
        if network == NetworkType.LOCAL:
            return LOCAL_ADDRESSES
        return MAINNET_ADDRESSES
