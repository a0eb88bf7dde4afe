from enum import Enum
from typing import Any, Dict, Optional

from flask import current_app, request
from flask_socketio import join_room, leave_room
from pydantic import ValidationError

from dinder import presence, socketio
from dinder.errors import DinderError, NotInSession, SessionComplete
from dinder.keys import room_for
from dinder.models import SessionState
from dinder.repositories import participants as participant_repo
from dinder.schemas import (
    SelectionSubmitPayload,
    SessionCodePayload,
    SessionJoinPayload,
    describe_validation_error,
)
from dinder.services import overlap as overlap_service
from dinder.services import selections as selection_service
from dinder.services import sessions as session_service
from dinder.store import refresh_session_ttl

NAMESPACE = '/ws'


class ClientEvent(str, Enum):
    JOIN = 'session:join'
    SUBMIT = 'selection:submit'
    RESTART = 'session:restart'
    LEAVE = 'session:leave'


class ServerEvent(str, Enum):
    PARTICIPANT_JOINED = 'participant:joined'
    PARTICIPANT_SUBMITTED = 'participant:submitted'
    PARTICIPANT_LEFT = 'participant:left'
    SESSION_RESULTS = 'session:results'
    SESSION_RESTARTED = 'session:restarted'
    SESSION_EXPIRED = 'session:expired'


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _ok(**fields) -> Dict[str, Any]:
    return {'success': True, **fields}


def _failure(error: str) -> Dict[str, Any]:
    return {'success': False, 'error': error}


def broadcast(event: ServerEvent, data: Dict[str, Any], code: str, skip_sid: Optional[str] = None) -> None:
    """Fire-and-forget emit to a session room. Failures are logged, not retried."""
    try:
        socketio.emit(event.value, data, to=room_for(code), namespace=NAMESPACE, skip_sid=skip_sid)
    except Exception:
        current_app.logger.warning(f"[broadcast] {event.value} to session={code} failed", exc_info=True)


# ---- Handlers ----

def handle_connect(auth=None):
    current_app.logger.debug(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    # Presence only: the participant stays in the session and may come back
    sid = _get_sid()
    try:
        participant = participant_repo.get(sid)
        if participant is None:
            return
        code = participant.session_code
        if not presence.is_online(code, sid):
            return
        presence.mark_offline(code, sid)
        participant_count = participant_repo.count(code)
        broadcast(ServerEvent.PARTICIPANT_LEFT, {
            'participantId': sid,
            'displayName': participant.display_name,
            'participantCount': participant_count,
            'isOnline': False,
        }, code, skip_sid=sid)
        current_app.logger.info(f"[disconnect] session={code} participant={sid} reason={reason} (kept)")
    except Exception:
        current_app.logger.exception(f"[disconnect] failed for sid={sid}")


def handle_join(payload: SessionJoinPayload) -> Dict[str, Any]:
    code = payload.session_code
    sid = _get_sid()

    # One session per connection: joining another one means leaving the first
    previous = participant_repo.get(sid)
    if previous is not None and previous.session_code != code:
        try:
            _depart(previous.session_code, sid)
        except DinderError as exc:
            current_app.logger.info(
                f"[join] sid={sid} could not leave previous session={previous.session_code}: {exc.code}"
            )

    result = session_service.join_session(code, sid, payload.display_name)
    join_room(room_for(code))
    presence.mark_online(code, sid)
    refresh_session_ttl(code)

    participants = participant_repo.list_for_session(code)
    online = presence.online_status(code, [p.participant_id for p in participants])
    session = session_service.get_session(code)
    capacity = session_service.max_participants()

    if not result.already_joined:
        broadcast(ServerEvent.PARTICIPANT_JOINED, {
            'participantId': sid,
            'displayName': result.participant.display_name,
            'participantCount': result.participant_count,
            'isOnline': True,
        }, code, skip_sid=sid)
        current_app.logger.info(
            f"[join] session={code} participant={sid} name={result.participant.display_name!r} "
            f"count={result.participant_count}/{capacity}"
        )

    return _ok(
        participantId=sid,
        sessionCode=code,
        displayName=result.participant.display_name,
        isHost=result.participant.is_host,
        participantCount=result.participant_count,
        state=session.state.value if session else SessionState.waiting.value,
        participants=[p.to_dict(is_online=online.get(p.participant_id, False)) for p in participants],
    )


def handle_submit(payload: SelectionSubmitPayload) -> Dict[str, Any]:
    code = payload.session_code
    sid = _get_sid()

    session = session_service.require_session(code)
    if not participant_repo.is_member(code, sid):
        raise NotInSession()
    if session.state == SessionState.complete:
        raise SessionComplete()

    selection_service.submit_selections(code, sid, payload.selections)
    participant_repo.mark_submitted(sid)
    session_service.begin_selecting(code)
    session_service.update_last_activity(code)
    participant_ids = participant_repo.list_ids(code)
    refresh_session_ttl(code, participant_ids)

    # Re-read after our own write so the last submission is never missed
    submitted_count = selection_service.get_submitted_count(code)
    participant_count = len(participant_ids)
    broadcast(ServerEvent.PARTICIPANT_SUBMITTED, {
        'participantId': sid,
        'submittedCount': submitted_count,
        'participantCount': participant_count,
    }, code, skip_sid=sid)
    current_app.logger.info(f"[submit] session={code} participant={sid} ({submitted_count}/{participant_count})")

    _complete_if_ready(code)
    return _ok()


def handle_restart(payload: SessionCodePayload) -> Dict[str, Any]:
    code = payload.session_code
    sid = _get_sid()

    session_service.require_session(code)
    if not participant_repo.is_member(code, sid):
        raise NotInSession()

    selection_service.clear_selections(code)
    participant_ids = participant_repo.list_ids(code)
    participant_repo.reset_submitted(participant_ids)
    session_service.update_session_state(code, SessionState.selecting)
    session_service.update_last_activity(code)
    refresh_session_ttl(code, participant_ids)

    broadcast(ServerEvent.SESSION_RESTARTED, {
        'sessionCode': code,
        'message': 'Session restarted. Make new selections.',
    }, code)
    current_app.logger.info(f"[restart] session={code} by={sid}")
    return _ok()


def handle_leave(payload: SessionCodePayload) -> Dict[str, Any]:
    _, participant_count = _depart(payload.session_code, _get_sid())
    return _ok(participantCount=participant_count)


# ---- Shared steps ----

def _depart(code: str, sid: str):
    participant, participant_count = session_service.leave_session(code, sid)
    leave_room(room_for(code))
    broadcast(ServerEvent.PARTICIPANT_LEFT, {
        'participantId': sid,
        'displayName': participant.display_name,
        'participantCount': participant_count,
        'isOnline': False,
    }, code, skip_sid=sid)
    current_app.logger.info(f"[leave] session={code} participant={sid} remaining={participant_count}")
    # The one who left may have been the last holdout
    _complete_if_ready(code)
    return participant, participant_count


def _complete_if_ready(code: str) -> bool:
    """Compute and broadcast results once everyone has submitted.

    Concurrent last submissions can both see a full count; the atomic state
    claim lets exactly one of them publish.
    """
    participant_ids = participant_repo.list_ids(code)
    if not participant_ids:
        return False
    if selection_service.get_submitted_count(code) != len(participant_ids):
        return False
    if not session_service.claim_completion(code):
        return False

    try:
        results = overlap_service.calculate_overlap(code)
        overlap_service.store_results(code, results.option_ids)
    except Exception:
        # Nothing was published; reopen so the session is not stuck in complete
        session_service.reopen_selection(code)
        current_app.logger.warning(f"[complete] session={code} results failed, back to selecting")
        raise
    refresh_session_ttl(code, participant_ids)
    broadcast(ServerEvent.SESSION_RESULTS, {'sessionCode': code, **results.to_dict()}, code)
    current_app.logger.info(
        f"[complete] session={code} {'match found' if results.has_overlap else 'no overlap'} "
        f"options={results.option_ids}"
    )
    return True


# ---- Registration ----

# Closed set of client events: each one has exactly one payload schema and
# one handler, plus the generic message used when something unexpected breaks.
_EVENT_TABLE = {
    ClientEvent.JOIN: (SessionJoinPayload, handle_join, 'An error occurred while joining the session'),
    ClientEvent.SUBMIT: (SelectionSubmitPayload, handle_submit, 'An error occurred while submitting selections'),
    ClientEvent.RESTART: (SessionCodePayload, handle_restart, 'An error occurred while restarting the session'),
    ClientEvent.LEAVE: (SessionCodePayload, handle_leave, 'An error occurred while leaving the session'),
}


def _acknowledged(event: ClientEvent, schema, handler, failure_message: str):
    """Wrap a handler so every outcome comes back as an ack payload."""

    def _on_event(data=None):
        try:
            payload = schema.model_validate(data)
        except ValidationError as exc:
            return _failure(f"Invalid payload: {describe_validation_error(exc)}")
        try:
            return handler(payload)
        except DinderError as exc:
            current_app.logger.info(f"[{event.value}] rejected sid={_get_sid()} reason={exc.code}")
            return _failure(exc.message)
        except Exception:
            current_app.logger.exception(f"[{event.value}] unexpected error sid={_get_sid()}")
            return _failure(failure_message)

    _on_event.__name__ = f"on_{handler.__name__}"
    return _on_event


def register_socketio_handlers(namespace: str = NAMESPACE) -> None:
    """Register Socket.IO event handlers on the given namespace."""
    missing = [event.value for event in ClientEvent if event not in _EVENT_TABLE]
    if missing:
        raise RuntimeError(f"No handler registered for client events: {', '.join(missing)}")

    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    for event, (schema, handler, failure_message) in _EVENT_TABLE.items():
        socketio.on_event(event.value, _acknowledged(event, schema, handler, failure_message), namespace=namespace)
