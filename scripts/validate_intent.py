"""Offline guardrail check for a recorded intent.

Reads an intent JSON object (as returned by the reasoning model) from a file,
or stdin when the path is "-", and prints the verdict under the configured
policy limits. Exit code: 0 approved, 2 rejected, 1 invalid intent, unreadable file or
bad limits.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from core.config import PolicyLimits
from core.intent import InvalidIntent, parse_intent
from core.policy_engine import validate_intent

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    parser = argparse.ArgumentParser(description="Validate a loop intent against policy limits")
    parser.add_argument("path", help="intent JSON file, or - for stdin")
    parser.add_argument("--max-leverage", type=float, default=PolicyLimits.max_leverage)
    parser.add_argument("--min-yield", type=float, default=PolicyLimits.min_expected_yield)
    args = parser.parse_args(argv)

    try:
        raw = sys.stdin.read() if args.path == "-" else Path(args.path).read_text()
        limits = PolicyLimits(max_leverage=args.max_leverage, min_expected_yield=args.min_yield)
    except (OSError, ValueError) as exc:
        logger.error("cannot check intent: %s", exc)
        return 1

    try:
        verdict = validate_intent(parse_intent(raw), limits)
    except InvalidIntent as exc:
        logger.error("invalid intent: %s", exc)
        return 1

    logger.info("verdict: %s", verdict)
    return 0 if verdict.allows_execution else 2


if __name__ == "__main__":
    sys.exit(main())
