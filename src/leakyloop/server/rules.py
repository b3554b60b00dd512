"""Per-user-type rate-limit rules."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_USER_TYPE = "gen-user"


@dataclass(frozen=True)
class Rule:
    """How many bucket units one request of a user type costs.

    Attributes:
        amount: Units added to the client's bucket per request.
    """

    amount: int


# Hardcoded for now; a rule store could refresh this table in the background.
_RULES: dict[str, Rule] = {
    DEFAULT_USER_TYPE: Rule(amount=1 << 20),
}


def get_rule(user_type: str) -> Rule | None:
    """Return the rule for ``user_type``, or None if there is none."""
    return _RULES.get(user_type)
