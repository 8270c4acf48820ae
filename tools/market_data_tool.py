"""Market snapshot for the Aave → Morpho ETH loop.

A production build would read the Aave and Morpho contracts (or an API like
DefiLlama). The demo serves fixed figures that describe a profitable spread.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AaveMarket:
    supply_apy: float
    borrow_apy: float
    ltv: float  # fraction, e.g. 0.80


@dataclass(frozen=True)
class MorphoMarket:
    supply_apy: float
    borrow_apy: float
    match_rate: float  # fraction of supply matched peer-to-peer


@dataclass(frozen=True)
class MarketSnapshot:
    aave: AaveMarket
    morpho: MorphoMarket
    eth_price: float
    gas_price_gwei: float

    @property
    def spread(self) -> float:
        """Morpho supply APY minus Aave borrow APY, in percentage points."""
        return self.morpho.supply_apy - self.aave.borrow_apy

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


_MOCK_SNAPSHOT = MarketSnapshot(
    aave=AaveMarket(supply_apy=3.5, borrow_apy=1.2, ltv=0.80),
    morpho=MorphoMarket(supply_apy=9.5, borrow_apy=1.8, match_rate=0.95),
    eth_price=2800.0,
    gas_price_gwei=15.0,
)


class MarketDataTool:
    def get_snapshot(self) -> MarketSnapshot:
        logger.info("get_snapshot source=mock")
        return _MOCK_SNAPSHOT

    def summarize(self, snapshot: MarketSnapshot) -> str:
        """Compact one-line-per-venue summary for logs and prompts."""
        return "\n".join(
            [
                f"[aave] supply_apy={snapshot.aave.supply_apy:.2f}% "
                f"borrow_apy={snapshot.aave.borrow_apy:.2f}% ltv={snapshot.aave.ltv:.2f}",
                f"[morpho] supply_apy={snapshot.morpho.supply_apy:.2f}% "
                f"borrow_apy={snapshot.morpho.borrow_apy:.2f}% "
                f"match_rate={snapshot.morpho.match_rate * 100:.1f}%",
                f"[eth] price={snapshot.eth_price:.2f} gas={snapshot.gas_price_gwei:.1f}gwei "
                f"spread={snapshot.spread:.2f}%",
            ]
        )
