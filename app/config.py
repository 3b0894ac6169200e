"""
Centralized configuration — all env vars and ingestion constants.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Redis ─────────────────────────────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── PostgreSQL ────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── YouTube Data API ──────────────────────────────────────────────────────────
GOOGLE_API_KEY = os.getenv('GOOGLE_API_KEY')
YOUTUBE_API_URL = os.getenv('YOUTUBE_API_URL', 'https://www.googleapis.com/youtube/v3')
YOUTUBE_TIMEOUT = int(os.getenv('YOUTUBE_TIMEOUT', '30'))

# ── Auth ─────────────────────────────────────────────────────────────────────
# Comma-separated operator emails. The identity header is set by the
# authentication layer in front of this service.
OPERATOR_EMAILS = os.getenv('OPERATOR_EMAILS', '')
AUTH_IDENTITY_HEADER = os.getenv('AUTH_IDENTITY_HEADER', 'X-User-Email')
CRON_SECRET = os.getenv('CRON_SECRET')

# ── Ingestion ────────────────────────────────────────────────────────────────
PLATFORM = 'youtube'
SEARCH_MAX_RESULTS = 50
STATS_BATCH_SIZE = 50          # YouTube channels.list accepts at most 50 ids
SNAPSHOT_BATCH_SIZE = 50
BIO_MAX_LENGTH = 500
QUERY_INTERVAL_SECONDS = float(os.getenv('QUERY_INTERVAL_SECONDS', '0.5'))

# Applied when a rule leaves a bound empty
DEFAULT_MIN_FOLLOWERS = 0
DEFAULT_MAX_FOLLOWERS = 10_000_000

# ── Growth tracking ──────────────────────────────────────────────────────────
GROWTH_WINDOWS = (7, 30)


# ── Broad sweep ──────────────────────────────────────────────────────────────
# Generic queries that together cover most creator categories
SWEEP_QUERIES = (
    'vlog', 'tutorial', 'review', 'tips', 'how to',
    'day in the life', 'routine', 'challenge', 'reaction',
    'gameplay', 'cooking', 'workout', 'travel', 'haul',
)
SWEEP_MIN_FOLLOWERS = 10_000
SWEEP_MAX_FOLLOWERS = 500_000
