"""DFNS-custodied EVM wallet: build and broadcast looper calls.  Policy-unaware — caller must gate."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any

from web3 import Web3

from core.config import ChainConfig, DfnsConfig
from core.intent import Intent
from core.network_config import NetworkDetector, NetworkType, ProtocolAddresses
from tools.dfns_client import CredentialSigner, DfnsClient
from tools.looper_contract import encode_loop_call, function_name_for

logger = logging.getLogger(__name__)


class WalletTool:
    def __init__(
        self,
        dfns: DfnsConfig,
        chain: ChainConfig,
        *,
        client: DfnsClient | None = None,
        dry_run: bool = False,
    ):
        self._dfns = dfns
        self._chain = chain
        self._dry_run = dry_run
        self._network: NetworkType = NetworkDetector.detect(chain.rpc_url)
        self._addresses: ProtocolAddresses = NetworkDetector.get_addresses(self._network)
        self._client = client
        self._owns_client = False
        if self._client is None and not dry_run:
            if not dfns.is_complete():
                raise EnvironmentError("DFNS credentials not fully configured in .env")
            signer = CredentialSigner(
                dfns.cred_id,  # type: ignore[arg-type]
                dfns.private_key,  # type: ignore[arg-type]
                dfns.app_origin,
            )
            self._client = DfnsClient(
                dfns.org_id,  # type: ignore[arg-type]
                dfns.auth_token,  # type: ignore[arg-type]
                signer,
                base_url=dfns.api_url,
            )
            self._owns_client = True

    def close(self) -> None:
        """Close the DFNS client if this wallet created it."""
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None
            self._owns_client = False

    def __enter__(self) -> WalletTool:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def amount_wei(self) -> int:
        return Web3.to_wei(Decimal(self._chain.loop_amount_eth), "ether")

    # ── queries ───────────────────────────────────────────────────

    def prepare_transaction(self, intent: Intent, contract_address: str) -> dict[str, Any]:
        """Return the Eip1559 request body for *intent* against the looper at *contract_address*."""
        function_name = function_name_for(intent.should_loop)
        logger.info("encoding function data for %s …", function_name)
        # Morpho MarketParams encoding is left to the contract owner; empty bytes for now.
        data = encode_loop_call(
            intent.should_loop,
            self._addresses.weth,
            self.amount_wei,
            b"",
        )
        return {
            "kind": "Eip1559",
            "to": Web3.to_checksum_address(contract_address),
            "data": data,
        }

    # ── mutations ─────────────────────────────────────────────────

    def execute_loop(self, intent: Intent, contract_address: str) -> str:
        """Broadcast the looper call for *intent*.  Returns the tx hash, else the DFNS request id."""
        logger.info("preparing execution for AgenticLooper at %s (%s)", contract_address, self._network.value)
        transaction = self.prepare_transaction(intent, contract_address)
        if self._dry_run:
            logger.info("  dry run — not broadcasting payload: %s", json.dumps(transaction))
            return "DRY-RUN"

        if self._client is None:
            raise RuntimeError("DFNS client is not available; wallet was closed or built for dry run")
        wallet_id = self._dfns.wallet_id
        logger.info("  broadcasting through DFNS wallet %s … payload: %s", wallet_id, json.dumps(transaction))
        try:
            result = self._client.broadcast_transaction(wallet_id, transaction)  # type: ignore[arg-type]
        except Exception as exc:
            logger.error("  transaction failed via DFNS: %s", exc)
            raise

        logger.info("  broadcast request sent, tracking id: %s", result.get("id"))
        tx_hash = result.get("txHash")
        if tx_hash:
            logger.info("  → tx hash: %s", tx_hash)
            return str(tx_hash)
        request_id = result.get("id")
        if not request_id:
            raise RuntimeError(f"DFNS broadcast response has neither txHash nor id: {result}")
        return str(request_id)
