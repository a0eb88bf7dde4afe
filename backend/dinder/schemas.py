"""Payload schemas for socket events and HTTP bodies.

Clients speak camelCase; the models expose snake_case attributes and accept
either spelling.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, ValidationError

SESSION_CODE_PATTERN = r'^[A-Z0-9]{6}$'


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class SessionCodePayload(_Payload):
    session_code: str = Field(alias='sessionCode', pattern=SESSION_CODE_PATTERN)


class SessionJoinPayload(SessionCodePayload):
    display_name: str = Field(alias='displayName', min_length=1, max_length=50)


class SelectionSubmitPayload(SessionCodePayload):
    selections: List[str] = Field(min_length=1, max_length=50)


class CreateSessionRequest(_Payload):
    host_name: str = Field(alias='hostName', min_length=1, max_length=50)


class JoinSessionRequest(_Payload):
    participant_name: str = Field(alias='participantName', min_length=1, max_length=50)


def describe_validation_error(exc: ValidationError) -> str:
    """First problem in a form fit for the client, e.g. 'sessionCode: ...'."""
    errors = exc.errors()
    if not errors:
        return 'invalid payload'
    first = errors[0]
    location = '.'.join(str(part) for part in first.get('loc', ()))
    message = first.get('msg', 'invalid value')
    return f"{location}: {message}" if location else message
