"""Tests for tools/brain_tool.py with a mocked chat model."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from core.config import LLMConfig, PolicyLimits
from core.intent import InvalidIntent
from tools.brain_tool import ReasoningOracle
from tools.market_data_tool import MarketDataTool


@pytest.fixture
def oracle():
    with patch("tools.brain_tool.ChatOpenAI") as MockChat:
        llm = MagicMock()
        MockChat.return_value = llm
        yield ReasoningOracle(LLMConfig(api_key="test"), PolicyLimits()), llm


def _reply(llm: MagicMock, content: str) -> None:
    llm.invoke.return_value = MagicMock(content=content)


class TestBuildPrompt:
    def test_includes_market_and_limits(self, oracle) -> None:
        tool, _ = oracle
        prompt = tool.build_prompt(MarketDataTool().get_snapshot())
        assert "Aave V3 ETH Supply APY: 3.5%" in prompt
        assert "Morpho Blue Match Rate: 95.0%" in prompt
        assert "Max Leverage: 3.0x" in prompt
        assert "10% below Aave's LTV of 0.8" in prompt
        assert "effective LTV <= 0.72" in prompt
        assert "targetLeverage must be <= MAX_LEVERAGE" in prompt

    def test_custom_limits_flow_into_prompt(self) -> None:
        with patch("tools.brain_tool.ChatOpenAI"):
            tool = ReasoningOracle(LLMConfig(api_key="k"), PolicyLimits(max_leverage=2.0))
        assert "Max Leverage: 2.0x" in tool.build_prompt(MarketDataTool().get_snapshot())


class TestAnalyze:
    def test_plain_json(self, oracle) -> None:
        tool, llm = oracle
        _reply(
            llm,
            '{"shouldLoop": true, "targetLeverage": 2.5, "expectedNetYield": 6.2, "reasoning": "spread"}',
        )
        intent = tool.analyze(MarketDataTool().get_snapshot())
        assert intent.should_loop is True
        assert intent.target_leverage == 2.5
        assert intent.reasoning == "spread"

    def test_json_inside_markdown_fence(self, oracle) -> None:
        tool, llm = oracle
        _reply(llm, '```json\n{"shouldLoop": false, "reasoning": "hold"}\n```')
        intent = tool.analyze(MarketDataTool().get_snapshot())
        assert intent.should_loop is False

    def test_sends_system_and_user_messages(self, oracle) -> None:
        tool, llm = oracle
        _reply(llm, '{"shouldLoop": false}')
        tool.analyze(MarketDataTool().get_snapshot())
        messages = llm.invoke.call_args.args[0]
        assert [m["role"] for m in messages] == ["system", "user"]

    def test_no_json_raises_invalid_intent(self, oracle) -> None:
        tool, llm = oracle
        _reply(llm, "I think you should loop.")
        with pytest.raises(InvalidIntent, match="no JSON object"):
            tool.analyze(MarketDataTool().get_snapshot())

    def test_json_array_raises_invalid_intent(self, oracle) -> None:
        tool, llm = oracle
        _reply(llm, "[true, 2.5]")
        with pytest.raises(InvalidIntent, match="JSON object"):
            tool.analyze(MarketDataTool().get_snapshot())

    def test_llm_errors_propagate(self, oracle) -> None:
        tool, llm = oracle
        llm.invoke.side_effect = RuntimeError("rate limited")
        with pytest.raises(RuntimeError, match="rate limited"):
            tool.analyze(MarketDataTool().get_snapshot())
