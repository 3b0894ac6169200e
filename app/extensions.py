"""
Shared client instances — Redis.

redis.from_url() does not connect until the first command, so importing this
module is safe when Redis is down (tests, local dev). The rate-limit gates are
the only consumer and fall back to in-process spacing on connection errors.
"""
import redis

from app.config import REDIS_URL

redis_client = redis.from_url(REDIS_URL, decode_responses=True)
