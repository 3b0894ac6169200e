"""Shared test fixtures."""
import pytest
from unittest.mock import patch
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.database import Base

OPERATOR = 'ops@example.com'
CRON_SECRET = 'cron-test-secret'


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created."""
    engine = create_engine('sqlite:///:memory:')
    import app.models.discovered_creator
    import app.models.creator_snapshot
    import app.models.discovery_rule
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Session for arranging and inspecting rows. Commit setup data: the store
    helpers share the in-memory connection and roll back on close."""
    Session = sessionmaker(bind=db_engine)
    session = Session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(autouse=True)
def patch_get_session(db_engine):
    """
    Route every get_session() to a fresh session on the test engine.

    The store modules do `from app.database import get_session` at import
    time, so their local bindings are patched alongside app.database.
    """
    TestSession = sessionmaker(bind=db_engine)
    factory = lambda: TestSession()
    with patch('app.database.get_session', side_effect=factory), \
            patch('app.services.db.get_session', side_effect=factory), \
            patch('app.services.growth.get_session', side_effect=factory):
        yield TestSession


@pytest.fixture
def app():
    """Flask test app with a known operator and cron secret."""
    from app import create_app
    from app.services.access import OperatorPolicy
    app = create_app(
        operator_policy=OperatorPolicy([OPERATOR]),
        config={
            'TESTING': True,
            'GOOGLE_API_KEY': 'test-key',
            'CRON_SECRET': CRON_SECRET,
        },
    )
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


@pytest.fixture
def operator_headers():
    return {'X-User-Email': OPERATOR}


@pytest.fixture
def cron_headers():
    return {'Authorization': f'Bearer {CRON_SECRET}'}


@pytest.fixture
def make_channel():
    """Factory fixture — raw channels.list item as the YouTube API returns it."""
    def _make(channel_id='UC_test_001', subscribers=25000, videos=120, views=600000, **snippet):
        defaults = dict(
            title=f'Channel {channel_id}',
            description='Budget travel tips and city guides',
            customUrl=f'@{channel_id.lower()}',
            thumbnails={
                'default': {'url': f'https://yt3.example.com/{channel_id}/default.jpg'},
                'medium': {'url': f'https://yt3.example.com/{channel_id}/medium.jpg'},
            },
        )
        defaults.update(snippet)
        return {
            'id': channel_id,
            'snippet': defaults,
            'statistics': {
                'subscriberCount': str(subscribers),
                'videoCount': str(videos),
                'viewCount': str(views),
            },
        }
    return _make


@pytest.fixture
def make_rule(db_session):
    """Factory fixture — inserts and commits an AutoDiscoveryRule, returns its id."""
    from app.models.discovery_rule import AutoDiscoveryRule

    def _make(**overrides):
        defaults = dict(
            name='Travel micro-creators',
            search_queries=['budget travel vlog'],
            target_niches=['travel'],
            min_followers=10000,
            max_followers=50000,
            is_active=True,
        )
        defaults.update(overrides)
        rule = AutoDiscoveryRule(**defaults)
        db_session.add(rule)
        db_session.commit()
        return rule.id
    return _make
