"""Online presence per session, kept as a set next to the roster.

Presence is informational only: a participant who drops their socket stays
in the session and can come back.
"""

from typing import Dict, Iterable

from dinder import keys
from dinder.store import redis_store


def mark_online(code: str, participant_id: str) -> None:
    redis_store.client.sadd(keys.online_key(code), participant_id)


def mark_offline(code: str, participant_id: str) -> None:
    redis_store.client.srem(keys.online_key(code), participant_id)


def is_online(code: str, participant_id: str) -> bool:
    return bool(redis_store.client.sismember(keys.online_key(code), participant_id))


def online_status(code: str, participant_ids: Iterable[str]) -> Dict[str, bool]:
    participant_ids = list(participant_ids)
    if not participant_ids:
        return {}
    online = redis_store.client.smembers(keys.online_key(code))
    return {pid: pid in online for pid in participant_ids}
