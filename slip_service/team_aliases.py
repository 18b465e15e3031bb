# slip_service/team_aliases.py
"""
Team alias cache: maps scraped team names to an external team identifier.

Extraction takes any object with ``lookup`` and ``record``. The cache is
best-effort: a failing backend degrades to "no id" and never fails an
extraction.
"""

from datetime import datetime
from datetime import timezone
from typing import Dict
from typing import Optional
from typing import Protocol

import redis
import structlog

from .utils.text import normalize_team_key

log = structlog.get_logger(__name__)


class TeamLookup(Protocol):
    def lookup(self, name: str) -> Optional[str]: ...

    def record(self, name: str, team_id: str) -> None: ...


class NullTeamLookup:
    """Lookup that knows no teams."""

    def lookup(self, name: str) -> Optional[str]:
        return None

    def record(self, name: str, team_id: str) -> None:
        return None


class InMemoryTeamLookup:
    def __init__(self, provider: str = "default", entries: Optional[Dict[str, str]] = None):
        self.provider = provider
        self._entries: Dict[str, dict] = {}
        for name, team_id in (entries or {}).items():
            self.record(name, team_id)

    def _key(self, name: str) -> str:
        return f"{self.provider}:{normalize_team_key(name)}"

    def lookup(self, name: str) -> Optional[str]:
        entry = self._entries.get(self._key(name))
        return entry["team_id"] if entry else None

    def record(self, name: str, team_id: str) -> None:
        key = self._key(name)
        entry = self._entries.get(key)
        if entry and entry["team_id"] == team_id:
            entry["match_count"] += 1
            entry["last_used"] = datetime.now(timezone.utc)
            return
        self._entries[key] = {
            "team_id": team_id,
            "match_count": 1,
            "last_used": datetime.now(timezone.utc),
        }

    def stats(self, name: str) -> Optional[dict]:
        entry = self._entries.get(self._key(name))
        return dict(entry) if entry else None


class RedisTeamAliasCache:
    """Redis-backed alias store with an in-memory layer in front and as fallback."""

    def __init__(self, redis_url: Optional[str], provider: str = "api-football", ttl_seconds: int = 2592000):
        self.provider = provider
        self.ttl_seconds = ttl_seconds
        self.memory = InMemoryTeamLookup(provider=provider)
        self.redis_client = None
        if redis_url:
            self.connect(redis_url)

    def connect(self, redis_url: str) -> None:
        try:
            log.info("Attempting to connect to Redis...", url=redis_url)
            client = redis.Redis.from_url(redis_url, decode_responses=True)
            client.ping()
            self.redis_client = client
            log.info("Redis alias cache connected successfully.")
        except redis.exceptions.RedisError as e:
            log.warning("Failed to connect to Redis. Falling back to in-memory aliases.", error=str(e))
            self.redis_client = None

    def _key(self, name: str) -> str:
        return f"team_alias:{self.provider}:{normalize_team_key(name)}"

    def lookup(self, name: str) -> Optional[str]:
        cached = self.memory.lookup(name)
        if cached is not None or self.redis_client is None:
            return cached
        try:
            team_id = self.redis_client.hget(self._key(name), "team_id")
        except redis.exceptions.RedisError as e:
            log.warning("Redis alias lookup failed, using memory only.", error=str(e))
            return None
        if team_id:
            self.memory.record(name, team_id)
        return team_id

    def record(self, name: str, team_id: str) -> None:
        self.memory.record(name, team_id)
        if self.redis_client is None:
            return
        key = self._key(name)
        try:
            pipe = self.redis_client.pipeline()
            pipe.hset(key, mapping={"team_id": team_id, "last_used": datetime.now(timezone.utc).isoformat()})
            pipe.hincrby(key, "match_count", 1)
            pipe.expire(key, self.ttl_seconds)
            pipe.execute()
        except redis.exceptions.RedisError as e:
            log.warning("Redis alias write failed.", key=key, error=str(e))

    def close(self) -> None:
        if self.redis_client is not None:
            self.redis_client.close()
            log.info("Redis connection closed.")


def lookup_team_id(team_lookup: Optional[TeamLookup], name: str) -> Optional[str]:
    """Best-effort lookup. A hit is recorded again so usage stats stay current."""
    if team_lookup is None or not name:
        return None
    try:
        team_id = team_lookup.lookup(name)
    except Exception as e:
        log.warning("team_lookup_failed", team=name, error=str(e))
        return None
    if team_id is None:
        return None
    try:
        team_lookup.record(name, team_id)
    except Exception as e:
        log.warning("team_alias_record_failed", team=name, error=str(e))
    return team_id
