"""Declarative policy specifications.

These mirror the runtime checks in core/policy_engine.py and serve as
human-readable documentation of every safety rule the agent operates under.
The reasoning prompt embeds the loop_intent rules so the model sees the same
limits the validator enforces.
"""

POLICIES = {
    "loop_intent": {
        "description": "Gate every loop / unwind decision before it reaches the wallet.",
        "rules": [
            "Unwinding or holding (shouldLoop=false) is always permitted",
            "targetLeverage must be <= MAX_LEVERAGE; anything above is rejected",
            "expectedNetYield below MIN_EXPECTED_YIELD is allowed but flagged with a warning",
            "A looping intent without a finite targetLeverage and expectedNetYield is invalid",
        ],
    },
    "execution": {
        "description": "Gate the DFNS broadcast of requestLoop / requestUnwind.",
        "rules": [
            "PolicyEngine.check_intent is re-run immediately before broadcasting",
            "Rejected intents raise PolicyViolation and are never broadcast",
            "Unwind intents are only broadcast when EXECUTE_UNWINDS is enabled",
            "Dry runs encode the transaction payload but never call DFNS",
        ],
    },
}


def render_rules(name: str) -> str:
    """Return the rules of policy *name* as a bulleted block."""
    policy = POLICIES[name]
    return "\n".join(f"- {rule}" for rule in policy["rules"])
