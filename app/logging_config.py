"""
Structured logging configuration.

Called once from create_app(). LOG_FORMAT selects text or JSON output,
LOG_LEVEL defaults to INFO.

Ingestion code attaches context through `extra=` (rule_id, query, channel_id,
creator_id). JSON output carries those keys as top-level fields so a log
aggregator can follow one rule run or one channel across lines.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone

CONTEXT_FIELDS = ('rule_id', 'query', 'channel_id', 'creator_id')

_NOISY_LOGGERS = ('urllib3', 'requests', 'werkzeug', 'sqlalchemy.engine', 'alembic')

TEXT_FORMAT = '[%(asctime)s] %(levelname)s %(name)s: %(message)s'


class JSONFormatter(logging.Formatter):
    """One JSON object per line, plus any ingestion context passed via extra=."""

    def format(self, record):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value not in (None, ''):
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _resolve_level(name):
    level = logging.getLevelName((name or 'INFO').upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(app=None):
    """
    Install a single stderr handler on the root logger.

    Safe to call repeatedly (tests, the reloader): existing root handlers
    are replaced, not stacked.
    """
    level = _resolve_level(os.getenv('LOG_LEVEL'))

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if os.getenv('LOG_FORMAT', 'text').lower() == 'json':
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if app is not None:
        app.logger.setLevel(level)
