import re
import uuid

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException
from werkzeug.http import HTTP_STATUS_CODES

from dinder.errors import DinderError, SessionNotFound
from dinder.schemas import SESSION_CODE_PATTERN, CreateSessionRequest, JoinSessionRequest, describe_validation_error
from dinder.services import overlap as overlap_service
from dinder.services import sessions as session_service

sessions = Blueprint('sessions', __name__)

_CODE_RE = re.compile(SESSION_CODE_PATTERN)


def error_response(code: str, message: str, status: int):
    return jsonify({
        'error': HTTP_STATUS_CODES.get(status, 'Error'),
        'code': code,
        'message': message,
    }), status


def _validation_error(exc: ValidationError):
    return error_response('VALIDATION_ERROR', describe_validation_error(exc), 400)


def _normalize_code(session_code: str) -> str:
    code = session_code.upper()
    if not _CODE_RE.match(code):
        raise SessionNotFound(f"Session {session_code} not found or has expired")
    return code


@sessions.errorhandler(DinderError)
def _domain_error(exc: DinderError):
    return error_response(exc.code, exc.message, exc.http_status)


@sessions.errorhandler(Exception)
def _unexpected_error(exc: Exception):
    if isinstance(exc, HTTPException):
        return exc
    current_app.logger.exception(f"[api] {request.method} {request.path} failed")
    return error_response('INTERNAL_ERROR', 'An unexpected error occurred. Please try again later.', 500)


@sessions.route('', methods=['POST'])
def create_session():
    try:
        body = CreateSessionRequest.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        return _validation_error(exc)
    return jsonify(session_service.create_session(body.host_name)), 201


@sessions.route('/<string:session_code>', methods=['GET'])
def get_session(session_code):
    code = _normalize_code(session_code)
    payload = session_service.describe_session(code)
    if payload is None:
        raise SessionNotFound(f"Session {code} not found or has expired")
    return jsonify(payload)


@sessions.route('/<string:session_code>/join', methods=['POST'])
def join_session(session_code):
    code = _normalize_code(session_code)
    try:
        body = JoinSessionRequest.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        return _validation_error(exc)
    # No socket yet, so mint an id of our own
    participant_id = f"rest-{uuid.uuid4().hex[:12]}"
    result = session_service.join_session(code, participant_id, body.participant_name)
    return jsonify({
        'participantId': participant_id,
        'sessionCode': code,
        'participantName': result.participant.display_name,
        'participantCount': result.participant_count,
    })


@sessions.route('/<string:session_code>/results', methods=['GET'])
def get_results(session_code):
    code = _normalize_code(session_code)
    if session_service.get_session(code) is None:
        raise SessionNotFound(f"Session {code} not found or has expired")
    options = overlap_service.get_results(code)
    if options is None:
        return error_response('RESULTS_NOT_READY', 'Not everyone has submitted yet', 404)
    return jsonify({
        'sessionCode': code,
        'overlappingOptions': options,
        'hasOverlap': bool(options),
    })
