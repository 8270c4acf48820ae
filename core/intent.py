"""Trading intent produced by the reasoning step, and the verdict returned for it."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any


class InvalidIntent(Exception):
    """Raised when an intent is malformed and must not reach execution."""


@dataclass(frozen=True)
class Intent:
    should_loop: bool
    target_leverage: float | None = None
    expected_net_yield: float | None = None
    reasoning: str = ""

    @property
    def action(self) -> str:
        return "loop" if self.should_loop else "unwind"

    def to_dict(self) -> dict[str, Any]:
        return {
            "shouldLoop": self.should_loop,
            "targetLeverage": self.target_leverage,
            "expectedNetYield": self.expected_net_yield,
            "reasoning": self.reasoning,
        }


class VerdictKind(Enum):
    APPROVED = "approved"
    APPROVED_WITH_WARNING = "approved_with_warning"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Verdict:
    kind: VerdictKind
    message: str = ""

    @classmethod
    def approved(cls, message: str = "") -> Verdict:
        return cls(VerdictKind.APPROVED, message)

    @classmethod
    def warning(cls, message: str) -> Verdict:
        return cls(VerdictKind.APPROVED_WITH_WARNING, message)

    @classmethod
    def rejected(cls, reason: str) -> Verdict:
        return cls(VerdictKind.REJECTED, reason)

    @property
    def allows_execution(self) -> bool:
        return self.kind is not VerdictKind.REJECTED

    def __str__(self) -> str:
        if self.message:
            return f"{self.kind.value}: {self.message}"
        return self.kind.value


# Accept both the camelCase keys the model is asked for and snake_case.
_FIELD_ALIASES = {
    "should_loop": ("shouldLoop", "should_loop"),
    "target_leverage": ("targetLeverage", "target_leverage"),
    "expected_net_yield": ("expectedNetYield", "expected_net_yield"),
    "reasoning": ("reasoning", "reason"),
}


def _lookup(raw: dict[str, Any], field: str) -> Any:
    for key in _FIELD_ALIASES[field]:
        if key in raw:
            return raw[key]
    return None


def _as_number(name: str, value: Any) -> float | None:
    if value is None:
        return None
    # bool is an int subclass; "true" is never a leverage figure
    if isinstance(value, bool):
        raise InvalidIntent(f"{name} must be a number, got {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip().rstrip("%x").strip())
        except ValueError as exc:
            raise InvalidIntent(f"{name} must be a number, got {value!r}") from exc
    raise InvalidIntent(f"{name} must be a number, got {type(value).__name__}")


def _as_number_or_none(name: str, value: Any) -> float | None:
    # hold/unwind intents ignore leverage and yield, so placeholders like "N/A" are dropped
    try:
        return _as_number(name, value)
    except InvalidIntent:
        return None


def parse_intent(raw: dict[str, Any] | str) -> Intent:
    """Parse untrusted oracle output into a strict Intent.

    Numbers may arrive as strings ("2.5", "2.5x", "6.2%"). Missing numeric
    fields are kept as None; whether that is acceptable depends on the intent
    and is decided by the validator. A hold/unwind intent keeps non-numeric
    fields as None instead of failing.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise InvalidIntent(f"intent is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise InvalidIntent(f"intent must be a JSON object, got {type(raw).__name__}")

    should_loop = _lookup(raw, "should_loop")
    if not isinstance(should_loop, bool):
        raise InvalidIntent(f"shouldLoop must be a boolean, got {should_loop!r}")

    reasoning = _lookup(raw, "reasoning")
    if reasoning is None:
        reasoning = ""
    elif not isinstance(reasoning, str):
        raise InvalidIntent("reasoning must be text")

    as_number = _as_number if should_loop else _as_number_or_none
    return Intent(
        should_loop=should_loop,
        target_leverage=as_number("targetLeverage", _lookup(raw, "target_leverage")),
        expected_net_yield=as_number("expectedNetYield", _lookup(raw, "expected_net_yield")),
        reasoning=reasoning,
    )


def require_finite(name: str, value: float | None) -> float:
    if value is None:
        raise InvalidIntent(f"{name} is required for a looping intent")
    if not math.isfinite(value):
        raise InvalidIntent(f"{name} must be finite, got {value}")
    return float(value)
