"""
Cron routes — scheduled snapshot refresh and scheduled auto-discovery.

Protected by the CRON_SECRET bearer token when one is configured.
"""
import logging
from flask import Blueprint, current_app, jsonify

from app.errors import UpstreamError
from app.pipeline.refresher import SnapshotRefresher
from app.pipeline.runner import RuleRunner
from app.services.access import require_cron_secret
from app.services.youtube import YouTubeClient

logger = logging.getLogger(__name__)

bp = Blueprint('cron', __name__, url_prefix='/api/cron')


def _youtube_client():
    return YouTubeClient(api_key=current_app.config.get('GOOGLE_API_KEY'))


@bp.route('/update-snapshots')
@require_cron_secret
def update_snapshots():
    """Refresh the oldest-scraped batch of creators and append today's snapshots."""
    logger.info("Running snapshot update job")
    refresher = SnapshotRefresher(client=_youtube_client())
    try:
        summary = refresher.refresh()
    except UpstreamError as e:
        logger.error("Snapshot update failed: %s", e)
        return jsonify({'error': 'Failed to fetch channel data'}), 502

    if summary.selected == 0:
        return jsonify({'message': 'No creators to update'})
    return jsonify(summary.to_dict())


@bp.route('/auto-discover')
@require_cron_secret
def auto_discover():
    """Run every active discovery rule."""
    runner = RuleRunner(client=_youtube_client())
    results = runner.run_all_active()
    if not results:
        return jsonify({'message': 'No active rules'})
    return jsonify({'results': results})
