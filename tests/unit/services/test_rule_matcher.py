from __future__ import annotations

import random
from types import SimpleNamespace

from leadflow.core.enums import RuleType
from leadflow.services.rule_matcher import rule_matches, select_assignee


def _rule(rule_type, condition, users, is_active=True):
    return SimpleNamespace(type=rule_type, condition=condition, assigned_users=users, is_active=is_active)


def _lead(origin="", province=""):
    return SimpleNamespace(origin=origin, province=province)


def test_province_rule_matches_case_and_whitespace_insensitively():
    rules = [_rule(RuleType.PROVINCE, "Córdoba", [7])]
    assert select_assignee(_lead(province="  córdoba "), rules) == 7


def test_province_rule_requires_exact_match():
    rule = _rule(RuleType.PROVINCE, "Córdoba", [7])
    assert rule_matches(rule, origin="", province="Córdoba Capital") is False


def test_campaign_rule_matches_substring_of_origin():
    rules = [_rule(RuleType.CAMPAIGN, "facebook", [3])]
    assert select_assignee(_lead(origin="Campaña FACEBOOK verano"), rules) == 3


def test_first_matching_rule_wins():
    rules = [
        _rule(RuleType.CAMPAIGN, "verano", [1]),
        _rule(RuleType.PROVINCE, "Córdoba", [2]),
    ]
    assert select_assignee(_lead(origin="Promo verano", province="Córdoba"), rules) == 1


def test_matching_rule_without_candidates_does_not_stop_scan():
    rules = [
        _rule(RuleType.PROVINCE, "Córdoba", []),
        _rule(RuleType.CAMPAIGN, "instagram", [9]),
    ]
    assert select_assignee(_lead(origin="Instagram ads", province="Córdoba"), rules) == 9


def test_inactive_rules_are_skipped():
    rules = [_rule(RuleType.PROVINCE, "Córdoba", [4], is_active=False)]
    assert select_assignee(_lead(province="Córdoba"), rules) is None


def test_empty_condition_never_matches():
    rules = [_rule(RuleType.CAMPAIGN, "   ", [4])]
    assert select_assignee(_lead(origin="cualquier origen"), rules) is None


def test_no_rules_yields_none():
    assert select_assignee(_lead(origin="web"), []) is None


def test_candidate_is_drawn_from_rule_list_with_seeded_rng():
    rules = [_rule(RuleType.PROVINCE, "Salta", [10, 11, 12])]
    expected = random.Random(42).choice([10, 11, 12])
    assert select_assignee(_lead(province="Salta"), rules, rng=random.Random(42)) == expected


def test_ineligible_candidates_are_dropped_before_the_draw():
    rules = [_rule(RuleType.PROVINCE, "Córdoba", [3, 5])]
    picks = {select_assignee(_lead(province="Córdoba"), rules, rng=random.Random(seed), eligible={5}) for seed in range(10)}
    assert picks == {5}


def test_rule_left_without_eligible_candidates_does_not_stop_scan():
    rules = [
        _rule(RuleType.PROVINCE, "Córdoba", [3]),
        _rule(RuleType.CAMPAIGN, "feria", [8]),
    ]
    assert select_assignee(_lead(origin="Feria de turismo", province="Córdoba"), rules, eligible={8}) == 8
