"""Entry point: load config → build graph → invoke → exit."""

from __future__ import annotations

import argparse
import logging
import sys

from core.agent import _initial_state, build_graph
from core.config import load_config
from core.policy_engine import PolicyEngine

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Yield looper agent runner")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="decide and validate, but only log the transaction instead of broadcasting via DFNS",
    )
    parser.add_argument(
        "--contract-address",
        default=None,
        help="AgenticLooper address (defaults to LOOPER_ADDRESS)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logger.info("starting yield looper agent (dry_run=%s)", args.dry_run)
    try:
        config = load_config()
    except (EnvironmentError, ValueError) as exc:
        logger.error("configuration error: %s", exc)
        sys.exit(1)

    logger.info(
        "config loaded — model=%s max_leverage=%s min_yield=%s",
        config.llm.model,
        config.policy.max_leverage,
        config.policy.min_expected_yield,
    )

    policy = PolicyEngine(config.policy)

    graph = build_graph(config, policy, dry_run=args.dry_run, contract_address=args.contract_address)
    logger.info("graph built — invoking")
    result = graph.invoke(_initial_state())

    logger.info("─── done ───")
    logger.info("verdict:       %s", result.get("verdict"))
    logger.info("action_result: %s", result.get("action_result", ""))
    if result.get("error"):
        sys.exit(1)


if __name__ == "__main__":
    main()
