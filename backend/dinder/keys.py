"""Store key layout.

Every key hangs off a session code, so two sessions can never collide:

    session:{code}                    hash  session record
    session:{code}:participants       set   participant ids
    participant:{id}                  hash  participant record
    session:{code}:{id}:selections    set   option ids picked by one participant
    session:{code}:results            set   overlap ids (or the empty sentinel)
    session:{code}:online             set   participant ids with a live socket
    session:{code}:options            hash  option id -> cached catalog record
"""

from typing import Iterable, List

SESSION_PREFIX = 'session:'
EMPTY_RESULT_SENTINEL = '__empty__'


def session_key(code: str) -> str:
    return f"{SESSION_PREFIX}{code}"


def participants_key(code: str) -> str:
    return f"{SESSION_PREFIX}{code}:participants"


def participant_key(participant_id: str) -> str:
    return f"participant:{participant_id}"


def selections_key(code: str, participant_id: str) -> str:
    return f"{SESSION_PREFIX}{code}:{participant_id}:selections"


def results_key(code: str) -> str:
    return f"{SESSION_PREFIX}{code}:results"


def online_key(code: str) -> str:
    return f"{SESSION_PREFIX}{code}:online"


def options_key(code: str) -> str:
    return f"{SESSION_PREFIX}{code}:options"


def room_for(code: str) -> str:
    """Socket.IO room that holds every connection joined to a session."""
    return f"session:{code}"


def all_session_keys(code: str, participant_ids: Iterable[str]) -> List[str]:
    """Every key owned by a session, for TTL refresh and deletion."""
    keys = [
        session_key(code),
        participants_key(code),
        results_key(code),
        online_key(code),
        options_key(code),
    ]
    for participant_id in participant_ids:
        keys.append(participant_key(participant_id))
        keys.append(selections_key(code, participant_id))
    return keys
