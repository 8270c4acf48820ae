"""Runtime policy gate.  Every trading intent passes through here before execution."""

from __future__ import annotations

from core.config import PolicyLimits
from core.intent import Intent, InvalidIntent, Verdict, require_finite


class PolicyViolation(Exception):
    """Raised when an action is blocked by policy."""


def validate_intent(intent: Intent, limits: PolicyLimits) -> Verdict:
    """Decide whether *intent* may be executed under *limits*.

    Pure function: the same intent and limits always give the same verdict.
    Rejection is a normal outcome and is returned, not raised. A looping
    intent with a missing or non-finite leverage / yield raises InvalidIntent.
    """
    if not isinstance(intent, Intent):
        raise InvalidIntent(f"expected Intent, got {type(intent).__name__}")

    if not intent.should_loop:
        return Verdict.approved(f"hold/unwind: {intent.reasoning}" if intent.reasoning else "")

    leverage = require_finite("targetLeverage", intent.target_leverage)
    net_yield = require_finite("expectedNetYield", intent.expected_net_yield)

    if leverage > limits.max_leverage:
        return Verdict.rejected(f"leverage {leverage} exceeds max {limits.max_leverage}")

    if net_yield < limits.min_expected_yield:
        return Verdict.warning(
            f"expected yield {net_yield} below floor {limits.min_expected_yield}"
        )

    return Verdict.approved()


class PolicyEngine:
    def __init__(self, limits: PolicyLimits):
        self.limits = limits

    # ── intents ───────────────────────────────────────────────────

    def validate(self, intent: Intent) -> Verdict:
        return validate_intent(intent, self.limits)

    def check_intent(self, intent: Intent) -> Verdict:
        """Raise PolicyViolation if the intent may not be executed.

        Execution code calls this immediately before broadcasting, so a
        rejected intent cannot reach the wallet even if an earlier verdict
        was ignored.
        """
        verdict = self.validate(intent)
        if not verdict.allows_execution:
            raise PolicyViolation(f"GUARDRAIL TRIGGERED: {verdict.message}")
        return verdict
