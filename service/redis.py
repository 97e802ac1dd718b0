import json
import logging
from contextlib import contextmanager
from typing import Any, Optional

import redis

from config.setting import settings

logger = logging.getLogger(__name__)


@contextmanager
def cache_miss_on_failure(action: str):
    """An unreachable cache behaves as an empty one"""
    try:
        yield
    except redis.RedisError as e:
        logger.warning(f"Redis unavailable while {action}: {e}")


class Redis:
    """Shared JSON cache. Reads and writes never fail a request."""

    _instance = None
    redis_client = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.redis_client = redis.Redis(
                host=settings.REDIS_HOST,
                port=settings.REDIS_PORT,
                db=settings.REDIS_DB,
                password=settings.REDIS_PASSWORD or None,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                max_connections=20,
            )
        return cls._instance

    def get_json(self, key: str) -> Optional[Any]:
        with cache_miss_on_failure(f"reading {key}"):
            raw = self.redis_client.get(key)
            if raw:
                return json.loads(raw)
        return None

    def set_json(self, key: str, data: Any, expiry: Optional[int] = None) -> None:
        with cache_miss_on_failure(f"writing {key}"):
            self.redis_client.set(key, json.dumps(data), ex=expiry)

    def delete(self, *keys: str) -> None:
        with cache_miss_on_failure(f"dropping {', '.join(keys)}"):
            self.redis_client.delete(*keys)


def study_plans_key(user_id: str) -> str:
    return f"user_study_plans:{user_id}"


def documents_key(user_id: str) -> str:
    return f"user_documents:{user_id}"
