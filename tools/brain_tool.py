"""Reasoning oracle: ask a hosted LLM whether to open or unwind the loop."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from langchain_openai import ChatOpenAI

from core.config import LLMConfig, PolicyLimits
from core.intent import Intent, InvalidIntent, parse_intent
from policies.default_policies import render_rules
from tools.market_data_tool import MarketSnapshot

logger = logging.getLogger(__name__)

# Headroom kept between the loop's effective LTV and Aave's liquidation LTV.
LIQUIDATION_BUFFER = 0.10

_SYSTEM_PROMPT = (
    "You are a DeFi Yield Strategist. You decide whether to run a recursive ETH "
    "loop: borrow ETH on Aave V3 and supply it to Morpho Blue.\n"
    "Respond with ONLY valid JSON. No markdown. No explanation. Nothing else."
)


class ReasoningOracle:
    def __init__(self, config: LLMConfig, limits: PolicyLimits):
        self._limits = limits
        self._model_name = config.model
        self._llm = ChatOpenAI(
            model=config.model,
            openai_api_key=config.api_key,  # type: ignore[arg-type]
            base_url=config.base_url,
            temperature=config.temperature,
            max_tokens=1024,  # type: ignore[arg-type]
        )

    def build_prompt(self, snapshot: MarketSnapshot) -> str:
        max_ltv = snapshot.aave.ltv * (1.0 - LIQUIDATION_BUFFER)
        return (
            "Analyze the following Ethereum market data:\n"
            f"- Aave V3 ETH Supply APY: {snapshot.aave.supply_apy}%\n"
            f"- Aave V3 ETH Borrow APY: {snapshot.aave.borrow_apy}%\n"
            f"- Morpho Blue Supply APY: {snapshot.morpho.supply_apy}%\n"
            f"- Morpho Blue Match Rate: {snapshot.morpho.match_rate * 100}%\n\n"
            "Goal: Create a recursive loop by borrowing ETH on Aave and supplying to Morpho.\n"
            "Constraints:\n"
            f"- Max Leverage: {self._limits.max_leverage}x.\n"
            f"- Liquidation Buffer: Must stay {LIQUIDATION_BUFFER:.0%} below Aave's LTV of "
            f"{snapshot.aave.ltv} (effective LTV <= {max_ltv:.2f}).\n"
            f"- Minimum worthwhile net yield: {self._limits.min_expected_yield}% APY.\n\n"
            "Policy rules your decision is checked against:\n"
            f"{render_rules('loop_intent')}\n\n"
            "Return a JSON object only:\n"
            '{"shouldLoop": boolean, "targetLeverage": number, '
            '"expectedNetYield": number, "reasoning": string}\n'
        )

    def analyze(self, snapshot: MarketSnapshot) -> Intent:
        """Return the model's intent for *snapshot*.

        Raises InvalidIntent when the response holds no usable JSON object.
        LLM transport errors propagate unchanged.
        """
        logger.info("calling LLM (%s) …", self._model_name)
        response = self._llm.invoke([
            {"role": "system", "content": _SYSTEM_PROMPT},
            {"role": "user", "content": self.build_prompt(snapshot)},
        ])
        raw = str(response.content)
        logger.debug("raw LLM response: %s", raw[:500])
        return parse_intent(_extract_json(raw))


def _extract_json(raw: str) -> dict[str, Any]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", raw, re.DOTALL)
        if not match:
            raise InvalidIntent(f"no JSON object in model response: {raw[:200]!r}")
        try:
            data = json.loads(match.group())
        except json.JSONDecodeError as exc:
            raise InvalidIntent(f"model response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidIntent(f"model response must be a JSON object, got {type(data).__name__}")
    return data
