"""
Rule Runner — executes one AutoDiscoveryRule end to end.

For each search query, in order:
  GATE → SEARCH → FETCH STATS → NORMALIZE → TIER FILTER → UPSERT CREATOR + SNAPSHOT

Failure isolation:
  - UpstreamError on a query   → one failed outcome for the query, next query
  - PersistenceError on a row  → one failed outcome for the row, next row
  - NotFoundError for the rule → raised before any upstream call

last_run_at is stamped after the loop whether or not queries failed.

sweep() runs the same per-query steps over a fixed list of generic queries,
skipping channels an earlier query of the sweep already returned.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Set

from app.config import SWEEP_QUERIES
from app.errors import IngestionError, UpstreamError, PersistenceError
from app.pipeline.base import Outcome, RunSummary
from app.pipeline.normalizer import CreatorRecord, normalize_channel, normalize_import_payload
from app.pipeline.tiers import FollowerBounds, accepts, bounds_for_rule
from app.services.db import (
    get_rule, list_active_rules, mark_rule_run,
    upsert_creator, upsert_snapshot,
)
from app.services.rate_limiter import get_gate
from app.services.youtube import YouTubeClient

logger = logging.getLogger('pipeline.runner')


class RuleRunner:
    """Runs discovery rules against the YouTube API and the discovery store."""

    def __init__(self, client: Optional[YouTubeClient] = None, gate=None):
        self.client = client or YouTubeClient()
        self.gate = gate or get_gate('youtube')

    # ── Public API ────────────────────────────────────────────────────

    def run_rule(self, rule_id) -> RunSummary:
        rule = get_rule(rule_id)
        bounds = bounds_for_rule(rule)
        queries = [q.strip() for q in rule.get('search_queries') or [] if isinstance(q, str) and q.strip()]
        niche = rule.get('target_niches') or []

        summary = RunSummary(rule_id=rule['id'], rule_name=rule['name'])
        logger.info("Running rule %s '%s' — %d queries, followers %s",
                    rule['id'], rule['name'], len(queries), bounds.describe())

        for i, query in enumerate(queries, start=1):
            self.gate.wait()
            logger.info("Query %d/%d: '%s'", i, len(queries), query,
                        extra={'rule_id': rule['id'], 'query': query})
            self._run_query(query, bounds, niche, summary)
            summary.queries_run += 1

        try:
            mark_rule_run(rule['id'])
        except IngestionError:
            logger.error("Could not stamp last_run_at for rule %s", rule['id'])

        logger.info("Rule %s done — found=%d, imported=%d, failed=%d",
                    rule['id'], summary.found, summary.imported, len(summary.errors))
        return summary

    def run_all_active(self) -> List[Dict[str, Any]]:
        """Run every active rule. One rule's failure never stops the others."""
        results = []
        for rule in list_active_rules():
            try:
                summary = self.run_rule(rule['id'])
                results.append({'rule': rule['name'], 'found': summary.found, 'imported': summary.imported})
            except Exception as e:
                logger.error("Rule %s '%s' FAILED: %s", rule['id'], rule['name'], e, exc_info=True)
                results.append({'rule': rule['name'], 'error': str(e)})
        return results

    def sweep(self, bounds: FollowerBounds, queries: Sequence[str] = SWEEP_QUERIES) -> RunSummary:
        """
        Broad sweep: run a fixed list of generic queries with one set of bounds.

        A channel returned by an earlier query of the same sweep is not
        fetched or counted again. No rule is loaded or stamped.
        """
        summary = RunSummary(rule_name='sweep')
        seen = set()
        logger.info("Starting broad sweep — %d queries, followers %s", len(queries), bounds.describe())

        for query in queries:
            self.gate.wait()
            self._run_query(query, bounds, [], summary, seen=seen)
            summary.queries_run += 1

        logger.info("Sweep complete — found=%d, imported=%d, unique channels=%d",
                    summary.found, summary.imported, len(seen))
        return summary

    def import_channels(self, channels: List[Dict[str, Any]], niche: Optional[List[str]] = None) -> RunSummary:
        """Manual import of channels an operator picked from a search. No tier filter."""
        summary = RunSummary()
        for channel in channels:
            if not isinstance(channel, dict) or not channel.get('id'):
                summary.add(Outcome.skipped('', 'missing channel id'))
                continue
            record = normalize_import_payload(channel, niche=niche)
            summary.found += 1
            summary.add(self._import(record))
        logger.info("Manual import — %d of %d channels imported", summary.imported, len(channels))
        return summary

    # ── Steps ─────────────────────────────────────────────────────────

    def _run_query(self, query: str, bounds: FollowerBounds, niche: List[str], summary: RunSummary,
                   seen: Optional[Set[str]] = None):
        try:
            channel_ids = self.client.search(query)
            if seen is not None:
                channel_ids = [cid for cid in channel_ids if cid not in seen]
                seen.update(channel_ids)
            if not channel_ids:
                logger.info("No new results for '%s'", query)
                return
            channels = self.client.fetch_stats(channel_ids)
        except UpstreamError as e:
            logger.warning("Query '%s' failed upstream: %s", query, e, extra={'query': query})
            summary.add(Outcome.failed(str(e), query=query))
            return

        matched = 0
        for channel_id in channel_ids:
            raw = channels.get(channel_id)
            if raw is None:
                summary.add(Outcome.skipped(channel_id, 'missing upstream stats', query=query))
                continue

            record = normalize_channel(raw, niche=niche)
            if not accepts(record, bounds):
                logger.debug("Channel %s: %d subs outside %s", record.display_name, record.followers, bounds.describe())
                summary.add(Outcome.filtered(channel_id, f'{record.followers} followers outside {bounds.describe()}', query=query))
                continue

            matched += 1
            summary.found += 1
            summary.add(self._import(record, query=query))

        logger.info("'%s': %d/%d channels match follower bounds", query, matched, len(channel_ids))

    def _import(self, record: CreatorRecord, query: str = '') -> Outcome:
        try:
            creator_id = upsert_creator(record)
            upsert_snapshot(creator_id, record)
        except PersistenceError as e:
            logger.warning("Import failed for %s: %s", record.platform_user_id, e,
                           extra={'channel_id': record.platform_user_id, 'query': query})
            return Outcome.failed(f'Import error for {record.display_name}: {e}',
                                  channel_id=record.platform_user_id, query=query)
        return Outcome.imported(record.platform_user_id, creator_id, query=query)
