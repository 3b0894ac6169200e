"""
Admin routes — rule trigger, broad sweep, discovery-rule CRUD, manual YouTube
search + import.

All routes require an operator (see app.services.access). Ingestion errors are
mapped to status codes by the app-level error handler.
"""
import logging
from flask import Blueprint, current_app, request, jsonify

from app.pipeline.normalizer import flatten_channel
from app.pipeline.runner import RuleRunner
from app.pipeline.tiers import FollowerBounds
from app.config import (
    DEFAULT_MIN_FOLLOWERS, DEFAULT_MAX_FOLLOWERS, SWEEP_MIN_FOLLOWERS, SWEEP_MAX_FOLLOWERS,
)
from app.services.access import require_operator
from app.services.db import create_rule, delete_rule, list_rules, update_rule
from app.services.youtube import YouTubeClient

logger = logging.getLogger(__name__)

bp = Blueprint('admin', __name__, url_prefix='/api/admin')


def _youtube_client():
    return YouTubeClient(api_key=current_app.config.get('GOOGLE_API_KEY'))


def _require_api_key():
    if not current_app.config.get('GOOGLE_API_KEY'):
        logger.error("GOOGLE_API_KEY is not set")
        return jsonify({'error': 'GOOGLE_API_KEY is not configured'}), 500
    return None


# ── Rule trigger ─────────────────────────────────────────────────────────────

@bp.route('/auto-discover/run', methods=['POST'])
@require_operator
def run_rule():
    """Run one discovery rule now. Returns {found, imported, outcomes, errors?}."""
    data = request.get_json(silent=True) or {}
    try:
        rule_id = int(data.get('ruleId'))
    except (TypeError, ValueError):
        return jsonify({'error': 'ruleId is required'}), 400

    missing_key = _require_api_key()
    if missing_key:
        return missing_key

    runner = RuleRunner(client=_youtube_client())
    summary = runner.run_rule(rule_id)
    return jsonify(summary.to_dict())


# ── Discovery rules CRUD ─────────────────────────────────────────────────────

def _parse_queries(value):
    """Accept a list or the UI's comma-separated string."""
    if isinstance(value, str):
        value = value.split(',')
    if not isinstance(value, list):
        raise ValueError('search_queries must be a list of strings')
    return [str(q).strip() for q in value if str(q).strip()]


def _parse_bound(value, name):
    if value is None or value == '':
        return None
    try:
        bound = int(value)
    except (TypeError, ValueError):
        raise ValueError(f'{name} must be an integer')
    if bound < 0:
        raise ValueError(f'{name} must be >= 0')
    return bound


def _parse_id(value):
    if value is None or value == '':
        raise ValueError('id is required')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError('id must be an integer')


def _clean_rule_fields(data, partial=False):
    fields = {}
    if 'name' in data or not partial:
        name = (data.get('name') or '').strip()
        if not name:
            raise ValueError('Name is required')
        fields['name'] = name
    if 'search_queries' in data or not partial:
        queries = _parse_queries(data.get('search_queries') or [])
        if not queries:
            raise ValueError('At least one search query is required')
        fields['search_queries'] = queries
    if 'target_niches' in data:
        fields['target_niches'] = [str(n).strip() for n in data.get('target_niches') or [] if str(n).strip()]
    for key in ('min_followers', 'max_followers'):
        if key in data:
            fields[key] = _parse_bound(data[key], key)
    if fields.get('max_followers') == 0:
        # zero max means no upper bound, stored as empty
        fields['max_followers'] = None
    if 'is_active' in data:
        fields['is_active'] = bool(data['is_active'])

    lo, hi = fields.get('min_followers'), fields.get('max_followers')
    if lo is not None and hi is not None and lo > hi:
        raise ValueError('min_followers must not exceed max_followers')
    return fields


@bp.route('/discovery-rules')
@require_operator
def get_rules():
    return jsonify(list_rules())


@bp.route('/discovery-rules', methods=['POST'])
@require_operator
def post_rule():
    data = request.get_json(silent=True) or {}
    try:
        fields = _clean_rule_fields(data)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify(create_rule(fields)), 201


@bp.route('/discovery-rules', methods=['PATCH'])
@require_operator
def patch_rule():
    data = request.get_json(silent=True) or {}
    try:
        rule_id = _parse_id(data.get('id'))
        fields = _clean_rule_fields(data, partial=True)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    update_rule(rule_id, fields)
    return jsonify({'success': True})


@bp.route('/discovery-rules', methods=['DELETE'])
@require_operator
def remove_rule():
    data = request.get_json(silent=True) or {}
    try:
        rule_id = _parse_id(data.get('id'))
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    delete_rule(rule_id)
    return jsonify({'success': True})


# ── Manual search + import ───────────────────────────────────────────────────

@bp.route('/youtube/search', methods=['POST'])
@require_operator
def youtube_search():
    """Search channels and filter by subscriber bounds, biggest first."""
    data = request.get_json(silent=True) or {}
    query = (data.get('query') or '').strip()
    if not query:
        return jsonify({'error': 'Query required'}), 400
    try:
        bounds = FollowerBounds(
            min_followers=_parse_bound(data.get('minSubs'), 'minSubs') or DEFAULT_MIN_FOLLOWERS,
            max_followers=_parse_bound(data.get('maxSubs'), 'maxSubs') or DEFAULT_MAX_FOLLOWERS,
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    missing_key = _require_api_key()
    if missing_key:
        return missing_key

    client = _youtube_client()
    channel_ids = client.search(query)
    if not channel_ids:
        return jsonify({'channels': []})

    raw = client.fetch_stats(channel_ids)
    channels = [flatten_channel(raw[cid]) for cid in channel_ids if cid in raw]
    channels = [
        c for c in channels
        if bounds.min_followers <= c['subscriberCount'] <= bounds.max_followers
    ]
    channels.sort(key=lambda c: c['subscriberCount'], reverse=True)

    logger.info("Search '%s': %d of %d channels within %s", query, len(channels), len(raw), bounds.describe())
    return jsonify({'channels': channels})


def _parse_niche(value):
    """A single tag or a list of tags. None leaves the stored niche alone."""
    if value is None:
        return None
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(n, str) for n in value):
        raise ValueError('niche must be a string or a list of strings')
    return [n.strip() for n in value if n.strip()]


@bp.route('/youtube/import', methods=['POST'])
@require_operator
def youtube_import():
    """Import channels chosen from a search result."""
    data = request.get_json(silent=True) or {}
    channels = data.get('channels') or []
    if not isinstance(channels, list) or not channels:
        return jsonify({'error': 'No channels to import'}), 400

    try:
        niche = _parse_niche(data.get('niche'))
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    runner = RuleRunner(client=_youtube_client())
    summary = runner.import_channels(channels, niche=niche)
    result = {'imported': summary.imported}
    if summary.errors:
        result['errors'] = summary.errors
    return jsonify(result)


# ── Broad sweep ──────────────────────────────────────────────────────────────

@bp.route('/sweep', methods=['POST'])
@require_operator
def sweep():
    """Run the generic sweep queries and import every new channel within bounds."""
    data = request.get_json(silent=True) or {}
    try:
        lo = _parse_bound(data.get('minSubs'), 'minSubs')
        hi = _parse_bound(data.get('maxSubs'), 'maxSubs')
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    bounds = FollowerBounds(
        min_followers=SWEEP_MIN_FOLLOWERS if lo is None else lo,
        max_followers=hi or SWEEP_MAX_FOLLOWERS,
    )
    if bounds.min_followers > bounds.max_followers:
        return jsonify({'error': 'minSubs must not exceed maxSubs'}), 400

    missing_key = _require_api_key()
    if missing_key:
        return missing_key

    runner = RuleRunner(client=_youtube_client())
    summary = runner.sweep(bounds)
    result = {
        'success': True,
        'found': summary.found,
        'imported': summary.imported,
        'queries': summary.queries_run,
    }
    if summary.errors:
        result['errors'] = summary.errors
    return jsonify(result)
