from typing import Iterable, List, Set

from dinder import keys
from dinder.store import redis_store

# Write the set only if the participant has none yet; 0 means already submitted.
_ADD_IF_ABSENT_LUA = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return 0
end
for i = 1, #ARGV do
    redis.call('SADD', KEYS[1], ARGV[i])
end
return 1
"""


def add_if_absent(code: str, participant_id: str, option_ids: List[str]) -> bool:
    if not option_ids:
        raise ValueError('option_ids must not be empty')
    script = redis_store.register('add_selections_if_absent', _ADD_IF_ABSENT_LUA)
    return bool(script(keys=[keys.selections_key(code, participant_id)], args=list(option_ids)))


def get(code: str, participant_id: str) -> Set[str]:
    return set(redis_store.client.smembers(keys.selections_key(code, participant_id)))


def count_submitted(code: str, participant_ids: Iterable[str]) -> int:
    participant_ids = list(participant_ids)
    if not participant_ids:
        return 0
    pipe = redis_store.client.pipeline()
    for participant_id in participant_ids:
        pipe.scard(keys.selections_key(code, participant_id))
    return sum(1 for size in pipe.execute() if size > 0)


def intersect(code: str, participant_ids: List[str]) -> Set[str]:
    selection_keys = [keys.selections_key(code, pid) for pid in participant_ids]
    return set(redis_store.client.sinter(selection_keys))


def clear_all(code: str, participant_ids: Iterable[str]) -> None:
    """Drop every participant's selections and the stored result."""
    pipe = redis_store.client.pipeline()
    for participant_id in participant_ids:
        pipe.delete(keys.selections_key(code, participant_id))
    pipe.delete(keys.results_key(code))
    pipe.execute()
