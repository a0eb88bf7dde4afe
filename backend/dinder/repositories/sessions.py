from typing import Iterable, Optional

from dinder import keys
from dinder.models import Session, SessionState
from dinder.store import redis_store

# Move state to ARGV[1] only from one of ARGV[2..]. Returns 1 only to the
# caller that performed the transition.
_TRANSITION_STATE_LUA = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return 0
end
local current = redis.call('HGET', KEYS[1], 'state')
for i = 2, #ARGV do
    if current == ARGV[i] then
        redis.call('HSET', KEYS[1], 'state', ARGV[1])
        return 1
    end
end
return 0
"""

# Write participantCount from the roster size in one step so concurrent
# joins and leaves never store a stale count.
_SYNC_PARTICIPANT_COUNT_LUA = """
local size = redis.call('SCARD', KEYS[2])
if redis.call('EXISTS', KEYS[1]) == 1 then
    redis.call('HSET', KEYS[1], 'participantCount', size)
end
return size
"""


def claim_code(code: str, host_id: str, host_name: str, now: int) -> bool:
    """Create the session hash if the code is free. False on collision."""
    r = redis_store.client
    if not r.hsetnx(keys.session_key(code), 'createdAt', now):
        return False
    r.hset(keys.session_key(code), mapping={
        'hostId': host_id,
        'hostName': host_name,
        'state': SessionState.waiting.value,
        'participantCount': 1,
        'lastActivityAt': now,
    })
    return True


def get(code: str) -> Optional[Session]:
    data = redis_store.client.hgetall(keys.session_key(code))
    if not data or 'state' not in data:
        return None
    return Session(
        session_code=code,
        host_id=data.get('hostId', ''),
        host_name=data.get('hostName', ''),
        state=SessionState(data['state']),
        participant_count=int(data.get('participantCount', 0)),
        created_at=int(data.get('createdAt', 0)),
        last_activity_at=int(data.get('lastActivityAt', 0)),
    )


def ttl(code: str) -> int:
    """Remaining seconds; -2 if the key is gone, -1 if it never got a TTL."""
    return redis_store.client.ttl(keys.session_key(code))


def exists(code: str) -> bool:
    return bool(redis_store.client.exists(keys.session_key(code)))


def update_state(code: str, state: SessionState) -> None:
    redis_store.client.hset(keys.session_key(code), 'state', state.value)


def touch(code: str, now: int) -> None:
    redis_store.client.hset(keys.session_key(code), 'lastActivityAt', now)


def sync_participant_count(code: str) -> int:
    """Store and return the current roster size."""
    script = redis_store.register('sync_participant_count', _SYNC_PARTICIPANT_COUNT_LUA)
    return int(script(keys=[keys.session_key(code), keys.participants_key(code)]))


def set_host(code: str, participant_id: str) -> None:
    redis_store.client.hset(keys.session_key(code), 'hostId', participant_id)


def transition_state(code: str, to_state: SessionState, from_states: Iterable[SessionState]) -> bool:
    script = redis_store.register('transition_state', _TRANSITION_STATE_LUA)
    args = [to_state.value] + [state.value for state in from_states]
    return bool(script(keys=[keys.session_key(code)], args=args))


def delete(code: str, participant_ids: Iterable[str]) -> None:
    redis_store.client.delete(*keys.all_session_keys(code, participant_ids))
