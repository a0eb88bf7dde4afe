import random
import string
import time
import uuid
from typing import Any, Dict, Optional, Tuple

from flask import current_app

from dinder.catalog import get_catalog
from dinder.errors import CodeGenerationExhausted, NotInSession, SessionFull, SessionNotFound
from dinder.models import JoinResult, Participant, Session, SessionState
from dinder.repositories import options as option_repo
from dinder.repositories import participants as participant_repo
from dinder.repositories import sessions as session_repo
from dinder.store import expires_at_iso, refresh_session_ttl

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6


def generate_session_code(length: int = CODE_LENGTH) -> str:
    """Generate a short, shareable session code."""
    return ''.join(random.choices(CODE_ALPHABET, k=length))


def _now() -> int:
    return int(time.time())


def max_participants() -> int:
    return int(current_app.config.get('MAX_PARTICIPANTS', 4))


def _full_error() -> SessionFull:
    return SessionFull(f"Session is full (maximum {max_participants()} participants)")


def shareable_link(code: str) -> str:
    base = current_app.config.get('FRONTEND_URL', 'http://localhost:3000').rstrip('/')
    return f"{base}/join?code={code}"


def create_session(host_name: str) -> Dict[str, Any]:
    """Claim a fresh code, cache the catalog for it and start its TTL.

    The host is not a participant yet; they become one (and the recorded
    host) on their first socket join.
    """
    attempts = int(current_app.config.get('SESSION_CODE_MAX_ATTEMPTS', 10))
    host_id = f"pending-{uuid.uuid4().hex[:8]}"
    now = _now()
    for _ in range(attempts):
        code = generate_session_code()
        if session_repo.claim_code(code, host_id, host_name, now):
            break
        current_app.logger.info(f"[create] code collision on {code}, retrying")
    else:
        current_app.logger.critical(f"[create] no free session code after {attempts} attempts")
        raise CodeGenerationExhausted(f"Failed to generate a unique session code after {attempts} attempts")

    option_repo.cache(code, get_catalog().list_options())
    expire_at = refresh_session_ttl(code, [])
    current_app.logger.info(f"[create] session={code} host={host_name!r}")
    return {
        'sessionCode': code,
        'hostName': host_name,
        'participantCount': 1,
        'state': SessionState.waiting.value,
        'expiresAt': expires_at_iso(expire_at),
        'shareableLink': shareable_link(code),
    }


def _live(code: str) -> Tuple[Optional[Session], int]:
    session = session_repo.get(code)
    if session is None:
        return None, -2
    remaining = session_repo.ttl(code)
    if remaining <= 0:
        # Expired (or never given a TTL) even if the delete hasn't landed yet
        return None, remaining
    return session, remaining


def get_session(code: str) -> Optional[Session]:
    return _live(code)[0]


def require_session(code: str) -> Session:
    session = get_session(code)
    if session is None:
        raise SessionNotFound()
    return session


def describe_session(code: str) -> Optional[Dict[str, Any]]:
    """Read-only lookup for clients without a socket yet."""
    session, remaining = _live(code)
    if session is None:
        return None
    return {
        'sessionCode': code,
        'hostName': session.host_name,
        'participantCount': session.participant_count,
        'state': session.state.value,
        'expiresAt': expires_at_iso(_now() + remaining),
        'shareableLink': shareable_link(code),
    }


def join_session(code: str, participant_id: str, display_name: str) -> JoinResult:
    """Admit a participant, bounded by MAX_PARTICIPANTS.

    Check-then-add is not atomic: concurrent joiners can all see room left
    and overshoot. After adding we re-read the count and evict ourselves if
    the ceiling was crossed.
    """
    require_session(code)

    if participant_repo.is_member(code, participant_id):
        existing = participant_repo.get(participant_id)
        if existing is not None:
            return JoinResult(existing, participant_repo.count(code), already_joined=True)

    capacity = max_participants()
    current_count = participant_repo.count(code)
    if current_count >= capacity:
        raise _full_error()

    is_host = current_count == 0
    now = _now()
    participant = participant_repo.add(code, participant_id, display_name, is_host, now)

    new_count = participant_repo.count(code)
    if new_count > capacity:
        participant_repo.remove(code, participant_id)
        session_repo.sync_participant_count(code)
        current_app.logger.warning(
            f"[join-rollback] session={code} participant={participant_id} overshoot={new_count}/{capacity}"
        )
        raise _full_error()

    new_count = session_repo.sync_participant_count(code)
    if is_host:
        session_repo.set_host(code, participant_id)
    session_repo.touch(code, now)
    refresh_session_ttl(code)
    return JoinResult(participant, new_count)


def leave_session(code: str, participant_id: str) -> Tuple[Participant, int]:
    """Remove a participant for good (unlike a disconnect)."""
    require_session(code)
    participant = participant_repo.get(participant_id)
    if participant is None or not participant_repo.is_member(code, participant_id):
        raise NotInSession()
    participant_repo.remove(code, participant_id)
    new_count = session_repo.sync_participant_count(code)
    session_repo.touch(code, _now())
    refresh_session_ttl(code)
    return participant, new_count


def update_session_state(code: str, state: SessionState) -> None:
    session_repo.update_state(code, state)


def update_last_activity(code: str) -> None:
    session_repo.touch(code, _now())


def begin_selecting(code: str) -> bool:
    """waiting -> selecting on the first accepted submission."""
    return session_repo.transition_state(code, SessionState.selecting, [SessionState.waiting])


def claim_completion(code: str) -> bool:
    """True for exactly one caller per selection cycle."""
    return session_repo.transition_state(
        code, SessionState.complete, [SessionState.waiting, SessionState.selecting]
    )


def reopen_selection(code: str) -> bool:
    """Undo a completion claim whose results were never published."""
    return session_repo.transition_state(code, SessionState.selecting, [SessionState.complete])


def expire_session(code: str) -> bool:
    """Mark the session expired, then delete every key it owns."""
    if not session_repo.exists(code):
        return False
    participant_ids = participant_repo.list_ids(code)
    session_repo.update_state(code, SessionState.expired)
    session_repo.delete(code, participant_ids)
    current_app.logger.info(f"[expire] session={code} participants={len(participant_ids)}")
    return True
