"""Rule-based assignee selection for incoming leads."""

from __future__ import annotations

import random
from collections.abc import Container, Iterable
from typing import Any

from leadflow.core.enums import RuleType
from leadflow.utils.validators import normalize_match_text


def rule_matches(rule: Any, origin: str | None, province: str | None) -> bool:
    """Campaign rules match by substring of the origin, province rules by equality."""
    condition = normalize_match_text(rule.condition)
    if not condition:
        return False
    rule_type = RuleType(rule.type)
    if rule_type is RuleType.CAMPAIGN:
        return condition in normalize_match_text(origin)
    if rule_type is RuleType.PROVINCE:
        return normalize_match_text(province) == condition
    return False


def select_assignee(
    lead: Any,
    active_rules: Iterable[Any],
    rng: random.Random | None = None,
    eligible: Container[int] | None = None,
) -> int | None:
    """Return a candidate user id from the first matching rule, or None.

    Rules are evaluated in the given order. A matching rule with no
    candidates does not stop the scan. Inactive rules are skipped. When
    `eligible` is given, candidates outside it are dropped before the draw,
    so a rule whose users were all deactivated counts as having none.
    """
    chooser = rng or random
    for rule in active_rules:
        if not rule.is_active:
            continue
        candidates = [user_id for user_id in rule.assigned_users or [] if eligible is None or user_id in eligible]
        if not candidates:
            continue
        if rule_matches(rule, getattr(lead, "origin", None), getattr(lead, "province", None)):
            return chooser.choice(candidates)
    return None
