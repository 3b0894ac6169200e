"""
Growth rates — derived from the creator_snapshots time series.

For each window N (7 and 30 days):

    growth_rate_Nd = (latest.followers - base.followers) / base.followers * 100

where `base` is the newest snapshot dated on or before latest_date - N days.
No such snapshot (or a zero follower base) leaves the rate NULL.
"""
import logging
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from app.config import GROWTH_WINDOWS, PLATFORM
from app.database import get_session
from app.errors import PersistenceError
from app.models.creator_snapshot import CreatorSnapshot
from app.models.discovered_creator import DiscoveredCreator

logger = logging.getLogger('services.growth')


def growth_rate(snapshots: List[CreatorSnapshot], days: int) -> Optional[float]:
    """Percent follower change over `days`, from snapshots sorted oldest → newest."""
    if not snapshots:
        return None
    latest = snapshots[-1]
    cutoff = latest.snapshot_date - timedelta(days=days)
    base = None
    for snap in snapshots:
        if snap.snapshot_date <= cutoff:
            base = snap
        else:
            break
    if base is None or not base.followers:
        return None
    return round(((latest.followers or 0) - base.followers) / base.followers * 100, 2)


def recalculate_growth_rates(platform: str = PLATFORM) -> int:
    """Recompute growth_rate_7d / growth_rate_30d for every creator. Returns rows updated."""
    session = get_session()
    try:
        creators = session.query(DiscoveredCreator).filter_by(platform=platform).all()
        updated = 0
        for creator in creators:
            snapshots = session.query(CreatorSnapshot).filter_by(
                discovered_creator_id=creator.id,
            ).order_by(CreatorSnapshot.snapshot_date.asc()).all()
            if not snapshots:
                continue
            rates = {days: growth_rate(snapshots, days) for days in GROWTH_WINDOWS}
            creator.growth_rate_7d = rates.get(7)
            creator.growth_rate_30d = rates.get(30)
            updated += 1
        session.commit()
        logger.info("Recalculated growth rates for %d creators", updated)
        return updated
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Growth rate recalculation failed", exc_info=True)
        raise PersistenceError(f"Growth rate recalculation failed: {e}") from e
    finally:
        session.close()
