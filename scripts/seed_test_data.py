#!/usr/bin/env python3
"""
Seed local data for exercising discovery, refresh and growth rates.

Creates:
  1. Two discovery rules (one active, one paused)
  2. A handful of creators with 35 days of daily snapshots
  3. One never-scraped creator, first in line for the next refresh

then recomputes growth_rate_7d / growth_rate_30d from the snapshots.

Usage:
    python scripts/seed_test_data.py          # seed
    python scripts/seed_test_data.py --clear  # wipe seeded data first

Requires: DATABASE_URL set (or defaults to sqlite:///local.db).
"""
import sys
import os
import argparse
from datetime import datetime, timezone, timedelta

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.database import get_session, engine, Base
from app.logging_config import configure_logging
from app.models.creator_snapshot import CreatorSnapshot
from app.models.discovered_creator import DiscoveredCreator
from app.models.discovery_rule import AutoDiscoveryRule
from app.services.growth import recalculate_growth_rates


# Prefix for seeded channel IDs / rule names so we can clear them
SEED_PREFIX = 'seed-'

HISTORY_DAYS = 35

# (handle, name, followers today, daily growth)
CREATORS = [
    ('wanderlust_jane',    'Jane Morrison',   82000,  0.004),
    ('trail_blazer_mik',   'Mik Andersen',    45000,  0.010),
    ('nomad.sophie',       'Sophie Laurent',  120000, 0.001),
    ('explore_with_priya', 'Priya Sharma',    27000,  0.020),
    ('passportpages',      'Derek Williams',  8000,   -0.002),
]

RULES = [
    {'name': 'Travel micro-creators', 'search_queries': ['budget travel vlog', 'solo travel tips'],
     'target_niches': ['travel'], 'min_followers': 10000, 'max_followers': 100000, 'is_active': True},
    {'name': 'Van life (paused)', 'search_queries': ['van life build'],
     'target_niches': ['travel', 'diy'], 'min_followers': 5000, 'max_followers': 50000, 'is_active': False},
]


def seed_rules(session):
    for rule in RULES:
        session.add(AutoDiscoveryRule(**{**rule, 'name': SEED_PREFIX + rule['name']}))
    print(f'  {len(RULES)} discovery rules')


def seed_creators(session):
    today = datetime.now(timezone.utc).date()
    now = datetime.now(timezone.utc)

    for i, (handle, name, followers, daily) in enumerate(CREATORS):
        creator = DiscoveredCreator(
            platform='youtube',
            platform_user_id=f'{SEED_PREFIX}UC{i:04d}',
            platform_username=handle,
            display_name=name,
            followers=followers,
            total_posts=100 + i * 20,
            avg_views=followers // 8,
            niche=['travel'],
            status='active',
            is_hidden=False,
            discovered_at=now - timedelta(days=HISTORY_DAYS),
            last_scraped_at=now - timedelta(hours=i + 1),
        )
        session.add(creator)
        session.flush()

        for days_ago in range(HISTORY_DAYS, -1, -1):
            session.add(CreatorSnapshot(
                discovered_creator_id=creator.id,
                platform='youtube',
                platform_user_id=creator.platform_user_id,
                followers=int(followers / (1 + daily) ** days_ago),
                total_posts=creator.total_posts - days_ago // 7,
                snapshot_date=today - timedelta(days=days_ago),
            ))

    session.add(DiscoveredCreator(
        platform='youtube',
        platform_user_id=f'{SEED_PREFIX}UCnever',
        platform_username='fresh_find',
        display_name='Fresh Find',
        followers=15000,
        status='active',
        is_hidden=False,
    ))
    print(f'  {len(CREATORS) + 1} creators, {len(CREATORS) * (HISTORY_DAYS + 1)} snapshots')


def clear_seeded_data(session):
    creators = session.query(DiscoveredCreator).filter(
        DiscoveredCreator.platform_user_id.like(f'{SEED_PREFIX}%')
    ).all()
    creator_ids = [c.id for c in creators]
    deleted_snaps = 0
    if creator_ids:
        deleted_snaps = session.query(CreatorSnapshot).filter(
            CreatorSnapshot.discovered_creator_id.in_(creator_ids)
        ).delete(synchronize_session=False)
    for creator in creators:
        session.delete(creator)
    deleted_rules = session.query(AutoDiscoveryRule).filter(
        AutoDiscoveryRule.name.like(f'{SEED_PREFIX}%')
    ).delete(synchronize_session=False)
    session.commit()
    print(f'Cleared {len(creators)} creators, {deleted_snaps} snapshots, {deleted_rules} rules.')


def main():
    parser = argparse.ArgumentParser(description='Seed local discovery data')
    parser.add_argument('--clear', action='store_true', help='Clear seeded data before (or instead of) seeding')
    parser.add_argument('--clear-only', action='store_true', help='Only clear, do not re-seed')
    args = parser.parse_args()

    configure_logging()

    # Ensure tables exist (for SQLite local dev)
    Base.metadata.create_all(engine)

    session = get_session()
    try:
        if args.clear or args.clear_only:
            clear_seeded_data(session)
            if args.clear_only:
                return

        print('Seeding discovery data...')
        seed_rules(session)
        seed_creators(session)
        session.commit()
    except Exception as e:
        session.rollback()
        print(f'Error: {e}')
        raise
    finally:
        session.close()

    updated = recalculate_growth_rates()
    print(f'Growth rates recalculated for {updated} creators. Done.')


if __name__ == '__main__':
    main()
