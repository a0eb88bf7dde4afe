from typing import Dict, Iterable, List, Optional

from dinder import keys
from dinder.models import Participant
from dinder.store import redis_store


def _from_hash(participant_id: str, data: Dict[str, str]) -> Participant:
    return Participant(
        participant_id=participant_id,
        display_name=data.get('displayName', ''),
        session_code=data.get('sessionCode', ''),
        joined_at=int(data.get('joinedAt', 0)),
        has_submitted=data.get('hasSubmitted') == '1',
        is_host=data.get('isHost') == '1',
    )


def add(code: str, participant_id: str, display_name: str, is_host: bool, now: int) -> Participant:
    pipe = redis_store.client.pipeline()
    pipe.sadd(keys.participants_key(code), participant_id)
    pipe.hset(keys.participant_key(participant_id), mapping={
        'displayName': display_name,
        'sessionCode': code,
        'joinedAt': now,
        'isHost': '1' if is_host else '0',
        'hasSubmitted': '0',
    })
    pipe.execute()
    return Participant(
        participant_id=participant_id,
        display_name=display_name,
        session_code=code,
        joined_at=now,
        has_submitted=False,
        is_host=is_host,
    )


def get(participant_id: str) -> Optional[Participant]:
    data = redis_store.client.hgetall(keys.participant_key(participant_id))
    if not data:
        return None
    return _from_hash(participant_id, data)


def list_ids(code: str) -> List[str]:
    return sorted(redis_store.client.smembers(keys.participants_key(code)))


def list_for_session(code: str) -> List[Participant]:
    """Participants in join order; ids whose record vanished are skipped."""
    ids = list_ids(code)
    if not ids:
        return []
    pipe = redis_store.client.pipeline()
    for participant_id in ids:
        pipe.hgetall(keys.participant_key(participant_id))
    found = [
        _from_hash(participant_id, data)
        for participant_id, data in zip(ids, pipe.execute())
        if data
    ]
    return sorted(found, key=lambda p: (p.joined_at, not p.is_host, p.participant_id))


def count(code: str) -> int:
    return redis_store.client.scard(keys.participants_key(code))


def is_member(code: str, participant_id: str) -> bool:
    return bool(redis_store.client.sismember(keys.participants_key(code), participant_id))


def mark_submitted(participant_id: str) -> None:
    redis_store.client.hset(keys.participant_key(participant_id), 'hasSubmitted', '1')


def reset_submitted(participant_ids: Iterable[str]) -> None:
    pipe = redis_store.client.pipeline()
    for participant_id in participant_ids:
        pipe.hset(keys.participant_key(participant_id), 'hasSubmitted', '0')
    pipe.execute()


def remove(code: str, participant_id: str) -> None:
    """Drop membership, record, selections and presence in one round trip."""
    pipe = redis_store.client.pipeline()
    pipe.srem(keys.participants_key(code), participant_id)
    pipe.delete(keys.participant_key(participant_id))
    pipe.delete(keys.selections_key(code, participant_id))
    pipe.srem(keys.online_key(code), participant_id)
    pipe.execute()
