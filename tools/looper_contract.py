"""AgenticLooper contract helpers: calldata encoding, reads and deployment.

Encoding is done offline (no RPC) so the wallet can build payloads for DFNS
and dry runs without a node connection.
"""

from __future__ import annotations

import logging
from typing import Any

from eth_abi import encode
from web3 import Web3

logger = logging.getLogger(__name__)

LOOPER_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "requestLoop",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "asset", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "params", "type": "bytes"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "requestUnwind",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "asset", "type": "address"},
            {"name": "amountToRepay", "type": "uint256"},
            {"name": "params", "type": "bytes"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "owner",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "pool",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "morpho",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
]

_CALL_ARG_TYPES = ["address", "uint256", "bytes"]


def function_name_for(should_loop: bool) -> str:
    return "requestLoop" if should_loop else "requestUnwind"


def encode_loop_call(should_loop: bool, asset: str, amount: int, params: bytes = b"") -> str:
    """Return 0x-prefixed calldata for requestLoop / requestUnwind."""
    if amount <= 0:
        raise ValueError("amount must be positive")
    name = function_name_for(should_loop)
    selector = bytes(Web3.keccak(text=f"{name}({','.join(_CALL_ARG_TYPES)})")[:4])
    args = encode(_CALL_ARG_TYPES, [Web3.to_checksum_address(asset), amount, params])
    return "0x" + (selector + args).hex()


class LooperContract:
    """Read-only view over a deployed AgenticLooper."""

    def __init__(self, w3: Web3, address: str):
        self.address = Web3.to_checksum_address(address)
        self._contract = w3.eth.contract(address=self.address, abi=LOOPER_ABI)

    def owner(self) -> str:
        return self._contract.functions.owner().call()

    def pool(self) -> str:
        return self._contract.functions.pool().call()

    def morpho(self) -> str:
        return self._contract.functions.morpho().call()


def deploy_looper(w3: Web3, account: Any, artifact: dict[str, Any], pool: str, morpho: str) -> str:
    """Deploy AgenticLooper(pool, morpho) from a compiled artifact and return its address.

    *artifact* is a Hardhat/Foundry JSON artifact with ``abi`` and ``bytecode``.
    *account* is an eth_account LocalAccount used to sign the deployment.
    """
    bytecode = artifact.get("bytecode")
    if isinstance(bytecode, dict):  # foundry layout: {"object": "0x…"}
        bytecode = bytecode.get("object")
    if not bytecode or "abi" not in artifact:
        raise ValueError("artifact must contain 'abi' and 'bytecode'")

    factory = w3.eth.contract(abi=artifact["abi"], bytecode=bytecode)
    tx = factory.constructor(
        Web3.to_checksum_address(pool),
        Web3.to_checksum_address(morpho),
    ).build_transaction(
        {
            "from": account.address,
            "nonce": w3.eth.get_transaction_count(account.address),
        }
    )
    signed = account.sign_transaction(tx)
    tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
    logger.info("deployment tx sent: %s", Web3.to_hex(tx_hash))
    receipt = w3.eth.wait_for_transaction_receipt(tx_hash)
    if receipt["status"] != 1:
        raise RuntimeError(f"deployment reverted: {Web3.to_hex(tx_hash)}")
    address = receipt["contractAddress"]
    logger.info("AgenticLooper deployed to %s", address)
    return address
