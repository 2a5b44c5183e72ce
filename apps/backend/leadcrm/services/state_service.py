import json
import logging
from typing import List, Dict, Optional

import redis

from leadcrm.config import settings

logger = logging.getLogger(__name__)


class HistoryCache:
    """
    Redis mirror of each conversation's message history in completion-API format.

    The database stays the source of truth; every operation here is best-effort
    and degrades to "no cache" when Redis is unreachable.
    """

    def __init__(self, client: "redis.Redis", ttl: int = settings.HISTORY_TTL_SECONDS,
                 max_messages: int = settings.MAX_CONVERSATION_HISTORY):
        self.r = client
        self.ttl = ttl
        self.max_messages = max_messages

    @staticmethod
    def _key(conversation_id: int) -> str:
        return f"advisor:conversation:{conversation_id}:history"

    def get_history(self, conversation_id: int) -> List[Dict[str, str]]:
        """
        Return cached history as [{"role": ..., "content": ...}, ...].

        An empty list means "not cached" and the caller should read the database.
        """
        try:
            data = self.r.lrange(self._key(conversation_id), 0, -1)
            return [json.loads(msg) for msg in data]
        except (redis.RedisError, ValueError) as e:
            logger.warning("History cache read failed for conversation %s: %s", conversation_id, e)
            return []

    def push_message(self, conversation_id: int, role: str, content: str) -> bool:
        """Append one message; False when the write did not reach Redis."""
        key = self._key(conversation_id)
        try:
            pipe = self.r.pipeline()
            pipe.rpush(key, json.dumps({"role": role, "content": content}))
            pipe.ltrim(key, -self.max_messages, -1)
            pipe.expire(key, self.ttl)
            pipe.execute()
        except redis.RedisError as e:
            logger.warning("History cache write failed for conversation %s: %s", conversation_id, e)
            return False
        return True

    def warm(self, conversation_id: int, history: List[Dict[str, str]]) -> None:
        """Replace the cached history with *history* (used after a database read)."""
        key = self._key(conversation_id)
        try:
            pipe = self.r.pipeline()
            pipe.delete(key)
            if history:
                pipe.rpush(key, *(json.dumps(m) for m in history[-self.max_messages:]))
                pipe.expire(key, self.ttl)
            pipe.execute()
        except redis.RedisError as e:
            logger.warning("History cache warm failed for conversation %s: %s", conversation_id, e)

    def clear(self, conversation_id: int) -> None:
        try:
            self.r.delete(self._key(conversation_id))
        except redis.RedisError as e:
            logger.warning("History cache clear failed for conversation %s: %s", conversation_id, e)


_cache: Optional[HistoryCache] = None


def get_history_cache() -> Optional[HistoryCache]:
    """FastAPI dependency; None when REDIS_URL is not configured."""
    global _cache
    if settings.REDIS_URL is None:
        return None
    if _cache is None:
        _cache = HistoryCache(redis.from_url(settings.REDIS_URL, decode_responses=True))
    return _cache
