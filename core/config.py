"""Load and validate application configuration from environment variables."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

# Placeholder looper deployment used by the demo when LOOPER_ADDRESS is unset.
DEMO_LOOPER_ADDRESS = "0x1234567890123456789012345678901234567890"


@dataclass(frozen=True)
class LLMConfig:
    api_key: str
    model: str = "google/gemini-2.5-flash"
    base_url: str = "https://openrouter.ai/api/v1"
    temperature: float = 0.2


@dataclass(frozen=True)
class PolicyLimits:
    """Hard and soft limits applied to every trading intent."""

    max_leverage: float = 3.0
    min_expected_yield: float = 0.5  # % APY; below this we warn, not reject

    def __post_init__(self) -> None:
        # frozen; ints from code become floats so messages read "3.0"
        object.__setattr__(self, "max_leverage", float(self.max_leverage))
        object.__setattr__(self, "min_expected_yield", float(self.min_expected_yield))
        if not math.isfinite(self.max_leverage) or self.max_leverage <= 0:
            raise ValueError(f"max_leverage must be a positive number, got {self.max_leverage}")
        if not math.isfinite(self.min_expected_yield):
            raise ValueError(f"min_expected_yield must be finite, got {self.min_expected_yield}")


@dataclass(frozen=True)
class DfnsConfig:
    cred_id: str | None = None
    private_key: str | None = None  # PEM; literal "\n" sequences are accepted
    org_id: str | None = None
    auth_token: str | None = None
    api_url: str = "https://api.dfns.io"
    wallet_id: str | None = None
    app_origin: str = "http://localhost:3000"

    def is_complete(self) -> bool:
        return all(
            (self.cred_id, self.private_key, self.org_id, self.auth_token, self.wallet_id)
        )


@dataclass(frozen=True)
class ChainConfig:
    rpc_url: str | None = None
    looper_address: str = DEMO_LOOPER_ADDRESS
    loop_amount_eth: str = "10"  # kept as text so it converts to wei exactly
    execute_unwinds: bool = False


@dataclass(frozen=True)
class AppConfig:
    llm: LLMConfig
    policy: PolicyLimits
    dfns: DfnsConfig
    chain: ChainConfig


def _getenv(name: str, default: str | None = None) -> str | None:
    """os.getenv wrapper that strips inline comments (e.g. '3.0  # note' → '3.0')."""
    raw = os.getenv(name, default)
    if raw is None:
        return None
    return raw.split(" #")[0].strip()


def _require(name: str) -> str:
    value = _getenv(name)
    if not value:
        raise EnvironmentError(f"Required environment variable {name} is not set")
    return value


def _getbool(name: str, default: bool = False) -> bool:
    value = _getenv(name)
    if not value:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def load_config() -> AppConfig:
    """Build AppConfig from environment. Raises EnvironmentError on missing keys."""
    return AppConfig(
        llm=LLMConfig(
            api_key=_require("OPENROUTER_API_KEY"),
            model=_getenv("LLM_MODEL", "google/gemini-2.5-flash"),  # type: ignore[arg-type]
            base_url=_getenv("LLM_BASE_URL", "https://openrouter.ai/api/v1"),  # type: ignore[arg-type]
        ),
        policy=PolicyLimits(
            max_leverage=float(_getenv("MAX_LEVERAGE", "3.0")),  # type: ignore[arg-type]
            min_expected_yield=float(_getenv("MIN_EXPECTED_YIELD", "0.5")),  # type: ignore[arg-type]
        ),
        dfns=DfnsConfig(
            cred_id=_getenv("DFNS_CRED_ID"),
            private_key=_getenv("DFNS_PRIVATE_KEY"),
            org_id=_getenv("DFNS_ORG_ID"),
            auth_token=_getenv("DFNS_AUTH_TOKEN"),
            api_url=_getenv("DFNS_API_URL", "https://api.dfns.io"),  # type: ignore[arg-type]
            wallet_id=_getenv("DFNS_WALLET_ID"),
            app_origin=_getenv("DFNS_APP_ORIGIN", "http://localhost:3000"),  # type: ignore[arg-type]
        ),
        chain=ChainConfig(
            rpc_url=_getenv("ALCHEMY_RPC_URL"),
            looper_address=_getenv("LOOPER_ADDRESS", DEMO_LOOPER_ADDRESS),  # type: ignore[arg-type]
            loop_amount_eth=_getenv("LOOP_AMOUNT_ETH", "10"),  # type: ignore[arg-type]
            execute_unwinds=_getbool("EXECUTE_UNWINDS"),
        ),
    )
