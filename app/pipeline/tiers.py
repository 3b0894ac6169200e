"""
Follower-tier filter — inclusive min/max bounds from a discovery rule.
"""
from dataclasses import dataclass

from app.config import DEFAULT_MIN_FOLLOWERS, DEFAULT_MAX_FOLLOWERS


@dataclass(frozen=True)
class FollowerBounds:
    min_followers: int = DEFAULT_MIN_FOLLOWERS
    max_followers: int = DEFAULT_MAX_FOLLOWERS

    def describe(self):
        return f"{self.min_followers}-{self.max_followers}"


def bounds_for_rule(rule) -> FollowerBounds:
    """
    Bounds from a rule (model or dict). A missing min falls back to 0; a
    missing or zero max means no upper bound (DEFAULT_MAX_FOLLOWERS).
    """
    if isinstance(rule, FollowerBounds):
        return rule
    if isinstance(rule, dict):
        lo, hi = rule.get('min_followers'), rule.get('max_followers')
    else:
        lo, hi = rule.min_followers, rule.max_followers
    return FollowerBounds(
        min_followers=DEFAULT_MIN_FOLLOWERS if lo is None else lo,
        max_followers=hi or DEFAULT_MAX_FOLLOWERS,
    )


def accepts(record, rule) -> bool:
    """True when min <= record.followers <= max."""
    bounds = bounds_for_rule(rule)
    return bounds.min_followers <= record.followers <= bounds.max_followers
