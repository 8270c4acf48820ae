"""LangGraph state machine: PERCEIVE → REASON → VALIDATE → ACT → DONE."""

from __future__ import annotations

import logging
from typing import TypedDict

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from core.config import AppConfig
from core.intent import Intent, InvalidIntent, Verdict, VerdictKind
from core.policy_engine import PolicyEngine, PolicyViolation
from tools.brain_tool import ReasoningOracle
from tools.market_data_tool import MarketDataTool, MarketSnapshot
from tools.wallet_tool import WalletTool

logger = logging.getLogger(__name__)

# ── state ─────────────────────────────────────────────────────────────────────


class AgentState(TypedDict):
    market: MarketSnapshot | None          # snapshot fetched in PERCEIVE
    observations: str                      # compact market summary
    intent: Intent | None                  # parsed oracle output from REASON
    verdict: Verdict | None                # guardrail outcome from VALIDATE
    action_result: str                     # outcome of ACT (or why it was skipped)
    error: str | None                      # set when the cycle failed
    done: bool


def _initial_state() -> AgentState:
    return AgentState(
        market=None,
        observations="",
        intent=None,
        verdict=None,
        action_result="",
        error=None,
        done=False,
    )


# ── node factories ────────────────────────────────────────────────────────────


def build_graph(
    config: AppConfig,
    policy: PolicyEngine,
    dry_run: bool = False,
    contract_address: str | None = None,
) -> CompiledStateGraph:
    market_tool = MarketDataTool()
    oracle = ReasoningOracle(config.llm, policy.limits)
    looper_address = contract_address or config.chain.looper_address

    # ── PERCEIVE ──────────────────────────────────────────────────
    def perceive_node(state: AgentState) -> AgentState:
        """Fetch the market snapshot."""
        logger.info("═══ PERCEIVE ═══")
        snapshot = market_tool.get_snapshot()
        observations = market_tool.summarize(snapshot)
        for line in observations.splitlines():
            logger.info("  %s", line)
        return {**state, "market": snapshot, "observations": observations}

    # ── REASON ────────────────────────────────────────────────────
    def reason_node(state: AgentState) -> AgentState:
        """Ask the LLM for a loop / unwind intent."""
        logger.info("═══ REASON ═══")
        try:
            intent = oracle.analyze(state["market"])
        except InvalidIntent as exc:
            logger.error("  invalid intent from oracle: %s", exc)
            return {**state, "intent": None, "error": f"invalid intent: {exc}"}
        except Exception as exc:
            logger.error("  LLM call failed: %s", exc)
            return {**state, "intent": None, "error": f"reasoning failed: {exc}"}

        logger.info(
            "  intent → loop=%s leverage=%s yield=%s",
            intent.should_loop,
            intent.target_leverage,
            intent.expected_net_yield,
        )
        logger.info("  reasoning: %s", intent.reasoning)
        return {**state, "intent": intent}

    # ── VALIDATE ──────────────────────────────────────────────────
    def validate_node(state: AgentState) -> AgentState:
        """Run the intent through the policy engine and log the verdict."""
        logger.info("═══ VALIDATE ═══")
        intent = state["intent"]
        if intent is None:
            logger.error("  no intent to validate")
            return {**state, "error": "no intent to validate"}
        try:
            verdict = policy.validate(intent)
        except InvalidIntent as exc:
            logger.error("  invalid intent: %s", exc)
            return {**state, "error": f"invalid intent: {exc}"}

        if verdict.kind is VerdictKind.REJECTED:
            logger.warning("  GUARDRAIL TRIGGERED: %s", verdict.message)
        elif verdict.kind is VerdictKind.APPROVED_WITH_WARNING:
            logger.warning("  approved with warning: %s", verdict.message)
        elif intent.should_loop:
            logger.info("  filter passed: leverage %sx is safe", intent.target_leverage)
        else:
            logger.info("  unwind/hold intent approved")
        return {**state, "verdict": verdict}

    # ── ACT ───────────────────────────────────────────────────────
    def act_node(state: AgentState) -> AgentState:
        """Re-gate the intent and broadcast the looper call."""
        logger.info("═══ ACT ═══")
        intent = state["intent"]
        if intent is None:
            result = "execution blocked: no intent"
            logger.error("  %s", result)
            return {**state, "action_result": result, "error": result, "done": True}
        try:
            policy.check_intent(intent)
            wallet = WalletTool(config.dfns, config.chain, dry_run=dry_run)
            try:
                ref = wallet.execute_loop(intent, looper_address)
            finally:
                wallet.close()
            result = f"{intent.action} requested at {looper_address}, ref={ref}"
            logger.info("  → %s", result)
            return {**state, "action_result": result, "done": True}
        except PolicyViolation as exc:
            logger.error("  execution blocked: %s", exc)
            result = f"execution blocked: {exc}"
        except Exception as exc:
            logger.error("  execution failed: %s", exc)
            result = f"execution failed: {exc}"
        return {**state, "action_result": result, "error": result, "done": True}

    # ── FINISH (no execution) ────────────────────────────────────
    def finish_node(state: AgentState) -> AgentState:
        logger.info("═══ DONE ═══")
        if state.get("error"):
            result = f"cycle aborted: {state['error']}"
        elif state["verdict"] is not None and not state["verdict"].allows_execution:
            result = f"rejected: {state['verdict'].message}"
        else:
            result = "no execution: agent decided not to loop; waiting for a better yield spread"
        logger.info("  %s", result)
        return {**state, "action_result": result, "done": True}

    # ── routing ───────────────────────────────────────────────────
    def _route_after_reason(state: AgentState) -> str:
        return "finish" if state.get("error") or state.get("intent") is None else "validate"

    def _route_after_validate(state: AgentState) -> str:
        """Only executable intents reach ACT; unwinds need EXECUTE_UNWINDS."""
        verdict = state.get("verdict")
        intent = state.get("intent")
        if state.get("error") or verdict is None or intent is None:
            return "finish"
        if not verdict.allows_execution:
            return "finish"
        if not intent.should_loop and not config.chain.execute_unwinds:
            return "finish"
        return "act"

    # ── wire the graph ────────────────────────────────────────────
    graph = StateGraph(AgentState)
    graph.add_node("perceive", perceive_node)
    graph.add_node("reason", reason_node)
    graph.add_node("validate", validate_node)
    graph.add_node("act", act_node)
    graph.add_node("finish", finish_node)

    graph.set_entry_point("perceive")
    graph.add_edge("perceive", "reason")
    graph.add_conditional_edges(
        "reason",
        _route_after_reason,
        {"validate": "validate", "finish": "finish"},
    )
    graph.add_conditional_edges(
        "validate",
        _route_after_validate,
        {"act": "act", "finish": "finish"},
    )
    graph.add_edge("act", END)
    graph.add_edge("finish", END)

    return graph.compile()
