#!/usr/bin/env python3
"""Deploy AgenticLooper with the Aave V3 pool and Morpho Blue for the target network.

Run manually; the agent never deploys. Expects the compiled contract artifact
(Hardhat layout: artifacts/contracts/AgenticLooper.sol/AgenticLooper.json) and
DEPLOYER_PRIVATE_KEY / ALCHEMY_RPC_URL in the environment.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from eth_account import Account
from web3 import Web3

from core.config import _getenv, _require
from core.network_config import NetworkDetector
from tools.looper_contract import LooperContract, deploy_looper

logger = logging.getLogger(__name__)

DEFAULT_ARTIFACT = Path("artifacts/contracts/AgenticLooper.sol/AgenticLooper.json")


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    parser = argparse.ArgumentParser(description="Deploy the AgenticLooper contract")
    parser.add_argument("--artifact", type=Path, default=DEFAULT_ARTIFACT)
    args = parser.parse_args(argv)

    rpc_url = _getenv("ALCHEMY_RPC_URL", "http://127.0.0.1:8545")
    network = NetworkDetector.detect(rpc_url)
    addresses = NetworkDetector.get_addresses(network)

    w3 = Web3(Web3.HTTPProvider(rpc_url))
    if not w3.is_connected():
        logger.error("cannot reach RPC at %s", rpc_url)
        return 1

    account = Account.from_key(_require("DEPLOYER_PRIVATE_KEY"))
    logger.info("deploying AgenticLooper on %s with account %s", network.value, account.address)

    artifact = json.loads(args.artifact.read_text())
    address = deploy_looper(w3, account, artifact, addresses.aave_pool, addresses.require_morpho())

    looper = LooperContract(w3, address)
    owner = looper.owner()
    pool = looper.pool()
    if owner.lower() != account.address.lower():
        logger.error("owner mismatch: expected %s, got %s", account.address, owner)
        return 1
    if pool.lower() != addresses.aave_pool.lower():
        logger.error("pool mismatch: expected %s, got %s", addresses.aave_pool, pool)
        return 1

    logger.info("AgenticLooper deployed to: %s (owner=%s pool=%s)", address, owner, pool)
    return 0


if __name__ == "__main__":
    sys.exit(main())
