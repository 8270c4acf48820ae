"""Tests for core/policy_engine.py — every rule gets a pass + fail case."""

from __future__ import annotations

import math

import pytest

from core.config import PolicyLimits
from core.intent import Intent, InvalidIntent, Verdict, VerdictKind
from core.policy_engine import PolicyEngine, PolicyViolation, validate_intent

# ── fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def limits() -> PolicyLimits:
    return PolicyLimits(max_leverage=3.0, min_expected_yield=0.5)


@pytest.fixture
def engine(limits: PolicyLimits) -> PolicyEngine:
    return PolicyEngine(limits)


def _loop(leverage: float | None, net_yield: float | None) -> Intent:
    return Intent(should_loop=True, target_leverage=leverage, expected_net_yield=net_yield)


# ── concrete scenarios ────────────────────────────────────────────────────────


class TestScenarios:
    def test_safe_loop_approved(self, limits: PolicyLimits) -> None:
        verdict = validate_intent(_loop(2.5, 6.2), limits)
        assert verdict == Verdict.approved()

    def test_excess_leverage_rejected(self, limits: PolicyLimits) -> None:
        verdict = validate_intent(_loop(3.5, 6.2), limits)
        assert verdict.kind is VerdictKind.REJECTED
        assert verdict.message == "leverage 3.5 exceeds max 3.0"

    def test_low_yield_warns(self, limits: PolicyLimits) -> None:
        verdict = validate_intent(_loop(2.0, 0.3), limits)
        assert verdict.kind is VerdictKind.APPROVED_WITH_WARNING
        assert verdict.message == "expected yield 0.3 below floor 0.5"

    def test_unwind_always_approved(self, limits: PolicyLimits) -> None:
        intent = Intent(
            should_loop=False,
            target_leverage=10.0,
            expected_net_yield=-5.0,
            reasoning="unwinding",
        )
        verdict = validate_intent(intent, limits)
        assert verdict.kind is VerdictKind.APPROVED
        assert "unwinding" in verdict.message

    def test_exact_boundaries_approved_without_warning(self, limits: PolicyLimits) -> None:
        verdict = validate_intent(_loop(3.0, 0.5), limits)
        assert verdict.kind is VerdictKind.APPROVED


# ── rule properties ───────────────────────────────────────────────────────────


class TestUnwind:
    @pytest.mark.parametrize("leverage", [None, -1.0, 0.0, 99.0, math.nan, math.inf])
    def test_leverage_ignored(self, limits: PolicyLimits, leverage: float | None) -> None:
        intent = Intent(should_loop=False, target_leverage=leverage, expected_net_yield=None)
        assert validate_intent(intent, limits).kind is VerdictKind.APPROVED


class TestLeverage:
    def test_just_above_max_rejected(self, limits: PolicyLimits) -> None:
        assert validate_intent(_loop(3.0001, 6.0), limits).kind is VerdictKind.REJECTED

    def test_rejection_wins_over_low_yield(self, limits: PolicyLimits) -> None:
        # Rule 2 runs before rule 3
        assert validate_intent(_loop(4.0, 0.1), limits).kind is VerdictKind.REJECTED

    def test_at_max_with_low_yield_warns(self, limits: PolicyLimits) -> None:
        verdict = validate_intent(_loop(3.0, 0.1), limits)
        assert verdict.kind is VerdictKind.APPROVED_WITH_WARNING

    def test_other_policy_regime(self) -> None:
        strict = PolicyLimits(max_leverage=2.0, min_expected_yield=1.0)
        assert validate_intent(_loop(2.5, 6.2), strict).kind is VerdictKind.REJECTED
        assert validate_intent(_loop(2.0, 1.0), strict).kind is VerdictKind.APPROVED

    def test_integer_limits_format_as_floats(self) -> None:
        verdict = validate_intent(_loop(4, 1), PolicyLimits(max_leverage=3))
        assert verdict.message == "leverage 4.0 exceeds max 3.0"

    def test_integer_floor_formats_as_float(self) -> None:
        verdict = validate_intent(_loop(2, 0), PolicyLimits(min_expected_yield=1))
        assert verdict.message == "expected yield 0.0 below floor 1.0"


class TestYield:
    def test_negative_yield_warns(self, limits: PolicyLimits) -> None:
        verdict = validate_intent(_loop(1.5, -2.0), limits)
        assert verdict.kind is VerdictKind.APPROVED_WITH_WARNING
        assert verdict.allows_execution

    def test_just_below_floor_warns(self, limits: PolicyLimits) -> None:
        verdict = validate_intent(_loop(1.5, 0.4999), limits)
        assert verdict.kind is VerdictKind.APPROVED_WITH_WARNING


class TestMalformed:
    @pytest.mark.parametrize(
        "leverage,net_yield",
        [
            (None, 5.0),
            (2.0, None),
            (math.nan, 5.0),
            (math.inf, 5.0),
            (2.0, math.nan),
            (2.0, -math.inf),
        ],
    )
    def test_looping_intent_needs_finite_numbers(
        self, limits: PolicyLimits, leverage: float | None, net_yield: float | None
    ) -> None:
        with pytest.raises(InvalidIntent):
            validate_intent(_loop(leverage, net_yield), limits)

    def test_non_intent_raises(self, limits: PolicyLimits) -> None:
        with pytest.raises(InvalidIntent, match="expected Intent"):
            validate_intent({"shouldLoop": True}, limits)  # type: ignore[arg-type]


class TestPurity:
    def test_same_input_same_verdict(self, limits: PolicyLimits) -> None:
        intent = _loop(2.0, 0.3)
        assert validate_intent(intent, limits) == validate_intent(intent, limits)

    def test_limits_are_immutable(self, limits: PolicyLimits) -> None:
        with pytest.raises(AttributeError):
            limits.max_leverage = 10.0  # type: ignore[misc]

    def test_invalid_limits_rejected(self) -> None:
        with pytest.raises(ValueError, match="max_leverage"):
            PolicyLimits(max_leverage=0.0)
        with pytest.raises(ValueError, match="min_expected_yield"):
            PolicyLimits(min_expected_yield=math.nan)


# ── execution gate ────────────────────────────────────────────────────────────


class TestCheckIntent:
    def test_approved_returns_verdict(self, engine: PolicyEngine) -> None:
        assert engine.check_intent(_loop(2.5, 6.2)).kind is VerdictKind.APPROVED

    def test_warning_does_not_block(self, engine: PolicyEngine) -> None:
        verdict = engine.check_intent(_loop(2.0, 0.3))
        assert verdict.kind is VerdictKind.APPROVED_WITH_WARNING

    def test_rejected_raises(self, engine: PolicyEngine) -> None:
        with pytest.raises(PolicyViolation, match="GUARDRAIL TRIGGERED: leverage 3.5 exceeds max 3.0"):
            engine.check_intent(_loop(3.5, 6.2))

    def test_malformed_raises_invalid_intent(self, engine: PolicyEngine) -> None:
        with pytest.raises(InvalidIntent):
            engine.check_intent(_loop(None, 6.2))
