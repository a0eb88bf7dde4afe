from typing import Iterable, List, Optional

from dinder import keys
from dinder.store import redis_store


def store(code: str, option_ids: Iterable[str]) -> None:
    """Persist the overlap; an empty one is written as the sentinel member
    because a Redis set cannot exist empty."""
    option_ids = list(option_ids)
    pipe = redis_store.client.pipeline()
    pipe.delete(keys.results_key(code))
    pipe.sadd(keys.results_key(code), *(option_ids or [keys.EMPTY_RESULT_SENTINEL]))
    pipe.execute()


def get(code: str) -> Optional[List[str]]:
    """None if nothing was computed yet, [] for a computed empty overlap."""
    members = redis_store.client.smembers(keys.results_key(code))
    if not members:
        return None
    return sorted(m for m in members if m != keys.EMPTY_RESULT_SENTINEL)
