"""
Discovery store — idempotent creator/snapshot upserts + rule persistence.

Each helper opens its own session and commits once; no transaction spans two
writes. Store failures are rolled back, logged, and raised as PersistenceError
so the runner can isolate them to a single record.
"""
import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from app.config import PLATFORM, SNAPSHOT_BATCH_SIZE
from app.database import get_session
from app.errors import NotFoundError, PersistenceError
from app.models.creator_snapshot import CreatorSnapshot
from app.models.discovered_creator import DiscoveredCreator
from app.models.discovery_rule import AutoDiscoveryRule

logger = logging.getLogger('services.db')


def _now():
    return datetime.now(timezone.utc)


# ── Creators ─────────────────────────────────────────────────────────────────

def upsert_creator(record, status: str = 'active') -> int:
    """
    INSERT or UPDATE a creator keyed by (platform, platform_user_id).

    Mutable fields are overwritten; id and discovered_at are kept.
    last_scraped_at is always refreshed. Returns the creator id.
    """
    session = get_session()
    try:
        creator = session.query(DiscoveredCreator).filter_by(
            platform=record.platform,
            platform_user_id=record.platform_user_id,
        ).first()

        if creator is None:
            creator = DiscoveredCreator(
                platform=record.platform,
                platform_user_id=record.platform_user_id,
                discovered_at=_now(),
                is_hidden=False,
            )
            session.add(creator)

        creator.platform_username = record.handle
        creator.display_name = record.display_name
        creator.profile_image_url = record.profile_image_url
        creator.bio = record.bio
        creator.followers = record.followers
        creator.total_posts = record.total_posts
        creator.avg_views = record.avg_views
        creator.status = status
        creator.last_scraped_at = _now()
        if record.niche:
            creator.niche = list(record.niche)

        session.commit()
        return creator.id
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to upsert creator %s", record.platform_user_id, exc_info=True)
        raise PersistenceError(f"Failed to upsert creator {record.platform_user_id}: {e}") from e
    finally:
        session.close()


def upsert_snapshot(creator_id: int, record, snapshot_date: Optional[date] = None) -> None:
    """INSERT or UPDATE the (creator_id, date) snapshot. Same-day calls overwrite."""
    snapshot_date = snapshot_date or _now().date()
    session = get_session()
    try:
        snapshot = session.query(CreatorSnapshot).filter_by(
            discovered_creator_id=creator_id,
            snapshot_date=snapshot_date,
        ).first()

        if snapshot is None:
            snapshot = CreatorSnapshot(
                discovered_creator_id=creator_id,
                snapshot_date=snapshot_date,
            )
            session.add(snapshot)

        snapshot.platform = record.platform
        snapshot.platform_user_id = record.platform_user_id
        snapshot.followers = record.followers
        snapshot.total_posts = record.total_posts

        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to upsert snapshot for creator %s", creator_id, exc_info=True)
        raise PersistenceError(f"Failed to upsert snapshot for creator {creator_id}: {e}") from e
    finally:
        session.close()


def update_creator_stats(creator_id: int, followers: int, total_posts: int, avg_views: int) -> None:
    """Refresher write: new counts + last_scraped_at."""
    session = get_session()
    try:
        creator = session.get(DiscoveredCreator, creator_id)
        if creator is None:
            raise NotFoundError('creator', creator_id)
        creator.followers = followers
        creator.total_posts = total_posts
        creator.avg_views = avg_views
        creator.last_scraped_at = _now()
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to update stats for creator %s", creator_id, exc_info=True)
        raise PersistenceError(f"Failed to update creator {creator_id}: {e}") from e
    finally:
        session.close()


def stale_creators(limit: int = SNAPSHOT_BATCH_SIZE, platform: str = PLATFORM) -> List[dict]:
    """
    Active creators ordered oldest-scraped first (never-scraped before all).

    Returns plain dicts so callers don't hold detached ORM rows.
    """
    session = get_session()
    try:
        rows = session.query(
            DiscoveredCreator.id,
            DiscoveredCreator.platform,
            DiscoveredCreator.platform_user_id,
        ).filter(
            DiscoveredCreator.platform == platform,
            DiscoveredCreator.status == 'active',
        ).order_by(
            DiscoveredCreator.last_scraped_at.is_(None).desc(),
            DiscoveredCreator.last_scraped_at.asc(),
            DiscoveredCreator.id.asc(),
        ).limit(limit).all()
        return [
            {'id': r.id, 'platform': r.platform, 'platform_user_id': r.platform_user_id}
            for r in rows
        ]
    except SQLAlchemyError as e:
        logger.error("Failed to load stale creators", exc_info=True)
        raise PersistenceError(f"Failed to load creators: {e}") from e
    finally:
        session.close()


# ── Rules ────────────────────────────────────────────────────────────────────

def get_rule(rule_id) -> dict:
    """Load one rule as a dict. Raises NotFoundError when it doesn't exist."""
    session = get_session()
    try:
        rule = session.get(AutoDiscoveryRule, rule_id)
        if rule is None:
            raise NotFoundError('rule', rule_id)
        return rule.to_dict()
    except SQLAlchemyError as e:
        logger.error("Failed to load rule %s", rule_id, exc_info=True)
        raise PersistenceError(f"Failed to load rule {rule_id}: {e}") from e
    finally:
        session.close()


def list_rules(active_only: bool = False) -> List[dict]:
    session = get_session()
    try:
        query = session.query(AutoDiscoveryRule).order_by(AutoDiscoveryRule.created_at.desc(), AutoDiscoveryRule.id.desc())
        if active_only:
            query = query.filter(AutoDiscoveryRule.is_active.is_(True))
        return [r.to_dict() for r in query.all()]
    except SQLAlchemyError as e:
        logger.error("Failed to list rules", exc_info=True)
        raise PersistenceError(f"Failed to list rules: {e}") from e
    finally:
        session.close()


def list_active_rules() -> List[dict]:
    return list_rules(active_only=True)


def create_rule(data: dict) -> dict:
    """Insert a new active rule. Caller validates name/search_queries."""
    session = get_session()
    try:
        rule = AutoDiscoveryRule(
            name=data['name'],
            search_queries=list(data.get('search_queries') or []),
            target_niches=list(data.get('target_niches') or []),
            min_followers=data.get('min_followers'),
            max_followers=data.get('max_followers'),
            is_active=data.get('is_active', True),
        )
        session.add(rule)
        session.commit()
        return rule.to_dict()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to create rule", exc_info=True)
        raise PersistenceError(f"Failed to create rule: {e}") from e
    finally:
        session.close()


def update_rule(rule_id, updates: dict) -> dict:
    """Apply operator edits. Unknown keys are ignored."""
    session = get_session()
    try:
        rule = session.get(AutoDiscoveryRule, rule_id)
        if rule is None:
            raise NotFoundError('rule', rule_id)
        for key, value in updates.items():
            if key in AutoDiscoveryRule.EDITABLE:
                setattr(rule, key, value)
        rule.updated_at = _now()
        session.commit()
        return rule.to_dict()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to update rule %s", rule_id, exc_info=True)
        raise PersistenceError(f"Failed to update rule {rule_id}: {e}") from e
    finally:
        session.close()


def delete_rule(rule_id) -> None:
    session = get_session()
    try:
        rule = session.get(AutoDiscoveryRule, rule_id)
        if rule is None:
            raise NotFoundError('rule', rule_id)
        session.delete(rule)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to delete rule %s", rule_id, exc_info=True)
        raise PersistenceError(f"Failed to delete rule {rule_id}: {e}") from e
    finally:
        session.close()


def mark_rule_run(rule_id) -> None:
    """Stamp last_run_at (and updated_at) after a rule execution."""
    session = get_session()
    try:
        rule = session.get(AutoDiscoveryRule, rule_id)
        if rule is None:
            raise NotFoundError('rule', rule_id)
        now = _now()
        rule.last_run_at = now
        rule.updated_at = now
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to stamp last_run_at for rule %s", rule_id, exc_info=True)
        raise PersistenceError(f"Failed to update rule {rule_id}: {e}") from e
    finally:
        session.close()
