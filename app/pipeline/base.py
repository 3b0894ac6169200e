"""
Pipeline result contracts.

Every unit of work (one channel, or one whole query when the upstream call
fails) produces a tagged Outcome. Runners aggregate outcomes into a summary
so partial failures stay visible instead of disappearing into logs.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

IMPORTED = 'imported'
FILTERED = 'filtered'
SKIPPED = 'skipped'
FAILED = 'failed'


@dataclass
class Outcome:
    """Result of one unit of work."""
    kind: str
    channel_id: str = ''
    query: str = ''
    reason: str = ''
    creator_id: Optional[int] = None

    @classmethod
    def imported(cls, channel_id, creator_id, query=''):
        return cls(IMPORTED, channel_id=channel_id, creator_id=creator_id, query=query)

    @classmethod
    def filtered(cls, channel_id, reason, query=''):
        return cls(FILTERED, channel_id=channel_id, reason=reason, query=query)

    @classmethod
    def skipped(cls, channel_id, reason, query=''):
        return cls(SKIPPED, channel_id=channel_id, reason=reason, query=query)

    @classmethod
    def failed(cls, reason, channel_id='', query=''):
        return cls(FAILED, channel_id=channel_id, reason=reason, query=query)

    def to_dict(self) -> Dict[str, Any]:
        d = {'kind': self.kind}
        for key in ('channel_id', 'query', 'reason'):
            if getattr(self, key):
                d[key] = getattr(self, key)
        if self.creator_id is not None:
            d['creator_id'] = self.creator_id
        return d


@dataclass
class OutcomeLog:
    """Aggregates outcomes; shared by rule runs and snapshot refreshes."""
    outcomes: List[Outcome] = field(default_factory=list)

    def add(self, outcome: Outcome) -> Outcome:
        self.outcomes.append(outcome)
        return outcome

    def count(self, kind: str) -> int:
        return sum(1 for o in self.outcomes if o.kind == kind)

    def counts(self) -> Dict[str, int]:
        return {kind: self.count(kind) for kind in (IMPORTED, FILTERED, SKIPPED, FAILED)}

    @property
    def errors(self) -> List[str]:
        return [o.reason for o in self.outcomes if o.kind == FAILED]


@dataclass
class RunSummary(OutcomeLog):
    """Totals for one rule execution."""
    rule_id: Optional[int] = None
    rule_name: str = ''
    found: int = 0
    queries_run: int = 0

    @property
    def imported(self) -> int:
        return self.count(IMPORTED)

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'found': self.found,
            'imported': self.imported,
            'outcomes': self.counts(),
        }
        if self.errors:
            d['errors'] = self.errors
        return d


@dataclass
class RefreshSummary(OutcomeLog):
    """Totals for one snapshot refresh batch."""
    selected: int = 0
    growth_updated: Optional[bool] = None

    @property
    def updated(self) -> int:
        return self.count(IMPORTED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': True,
            'updated': self.updated,
            'skipped': self.count(SKIPPED),
            'failed': self.count(FAILED),
            'growth_updated': self.growth_updated,
        }
