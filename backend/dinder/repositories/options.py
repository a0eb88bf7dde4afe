"""Per-session copy of the catalog, fetched once at session creation."""

import json
from typing import Any, Dict, Iterable, List, Set

from dinder import keys
from dinder.store import redis_store


def cache(code: str, options: Iterable[Dict[str, Any]]) -> int:
    mapping = {opt['optionId']: json.dumps(opt) for opt in options}
    if not mapping:
        return 0
    redis_store.client.hset(keys.options_key(code), mapping=mapping)
    return len(mapping)


def option_ids(code: str) -> Set[str]:
    return set(redis_store.client.hkeys(keys.options_key(code)))


def resolve(code: str, ids: Iterable[str]) -> List[Dict[str, Any]]:
    """Map ids to cached records in the given order, dropping unknown ids."""
    ids = list(ids)
    if not ids:
        return []
    raw = redis_store.client.hmget(keys.options_key(code), ids)
    return [json.loads(value) for value in raw if value is not None]
