"""Redis connection and session TTL helpers.

The store is the single source of truth; nothing mutable is cached in
process. The client lives in ``app.extensions['redis']`` so tests can hand
in a fake one through the ``REDIS_CLIENT`` config key.
"""

import time
from datetime import datetime, timezone
from typing import Iterable, Optional

import redis
from flask import current_app

from dinder import keys

# Applies one EXPIREAT to every key so a session's keys never drift apart.
_REFRESH_TTL_LUA = """
local expire_at = tonumber(ARGV[1])
for _, key in ipairs(KEYS) do
    redis.call('EXPIREAT', key, expire_at)
end
return expire_at
"""


class RedisStore:
    """Flask extension holding the shared Redis client."""

    def __init__(self, app=None):
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        client = app.config.get('REDIS_CLIENT')
        if client is None:
            client = redis.Redis.from_url(app.config['REDIS_URL'], decode_responses=True)
        app.extensions['redis'] = client
        app.extensions['redis_scripts'] = {
            'refresh_ttl': client.register_script(_REFRESH_TTL_LUA),
        }

    @property
    def client(self) -> redis.Redis:
        return current_app.extensions['redis']

    def script(self, name: str):
        return current_app.extensions['redis_scripts'][name]

    def register(self, name: str, source: str):
        """Register a Lua script once per app and return it."""
        scripts = current_app.extensions['redis_scripts']
        if name not in scripts:
            scripts[name] = self.client.register_script(source)
        return scripts[name]

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False


redis_store = RedisStore()


def calculate_expire_at(ttl_sec: Optional[int] = None) -> int:
    if ttl_sec is None:
        ttl_sec = int(current_app.config.get('SESSION_TTL_SEC', 1800))
    return int(time.time()) + ttl_sec


def refresh_session_ttl(code: str, participant_ids: Optional[Iterable[str]] = None) -> int:
    """Push the expiry of every key in the session out by one TTL window.

    When ``participant_ids`` is omitted the current roster is read first.
    Returns the new expiry as epoch seconds.
    """
    if participant_ids is None:
        participant_ids = redis_store.client.smembers(keys.participants_key(code))
    expire_at = calculate_expire_at()
    session_keys = keys.all_session_keys(code, sorted(participant_ids))
    redis_store.script('refresh_ttl')(keys=session_keys, args=[expire_at])
    return expire_at


def expires_at_iso(expire_at: int) -> str:
    return datetime.fromtimestamp(expire_at, tz=timezone.utc).isoformat().replace('+00:00', 'Z')
