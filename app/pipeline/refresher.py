"""
Snapshot Refresher — scheduled stats refresh for already-discovered creators.

Oldest-scraped creators first, one batched stats call per run. Creators the
API no longer returns are skipped and stay first in line for the next run.
"""
import logging
from datetime import datetime, timezone

from app.config import SNAPSHOT_BATCH_SIZE
from app.errors import NotFoundError, PersistenceError
from app.pipeline.base import Outcome, RefreshSummary
from app.pipeline.normalizer import normalize_channel
from app.services.db import stale_creators, update_creator_stats, upsert_snapshot
from app.services.growth import recalculate_growth_rates
from app.services.youtube import YouTubeClient

logger = logging.getLogger('pipeline.refresher')


class SnapshotRefresher:

    def __init__(self, client=None, growth_step=recalculate_growth_rates):
        self.client = client or YouTubeClient()
        self.growth_step = growth_step

    def refresh(self, batch_size: int = SNAPSHOT_BATCH_SIZE) -> RefreshSummary:
        """
        Refresh up to batch_size creators.

        UpstreamError from the batch fetch propagates: with no stats there is
        nothing to write and the job as a whole failed.
        """
        creators = stale_creators(limit=batch_size)
        summary = RefreshSummary(selected=len(creators))
        if not creators:
            logger.info("No creators to update")
            return summary

        channels = self.client.fetch_stats([c['platform_user_id'] for c in creators])
        today = datetime.now(timezone.utc).date()

        for creator in creators:
            raw = channels.get(creator['platform_user_id'])
            if raw is None:
                summary.add(Outcome.skipped(creator['platform_user_id'], 'missing upstream stats'))
                continue

            record = normalize_channel(raw)
            try:
                update_creator_stats(creator['id'], record.followers, record.total_posts, record.avg_views)
                upsert_snapshot(creator['id'], record, snapshot_date=today)
            except (PersistenceError, NotFoundError) as e:
                logger.warning("Refresh failed for creator %s: %s", creator['id'], e,
                               extra={'creator_id': creator['id'], 'channel_id': creator['platform_user_id']})
                summary.add(Outcome.failed(str(e), channel_id=creator['platform_user_id']))
                continue
            summary.add(Outcome.imported(creator['platform_user_id'], creator['id']))

        logger.info("Updated %d/%d creators (%d missing upstream)",
                    summary.updated, len(creators), summary.count('skipped'))

        self._recalculate_growth(summary)
        return summary

    def _recalculate_growth(self, summary: RefreshSummary):
        """Downstream step; a failure is reported on the summary, never raised."""
        try:
            self.growth_step()
            summary.growth_updated = True
        except Exception as e:
            logger.warning("Growth rate recalculation failed: %s", e)
            summary.growth_updated = False
