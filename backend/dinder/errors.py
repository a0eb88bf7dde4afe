"""Domain errors.

Every ``DinderError`` is an expected, recoverable rejection. Socket handlers
turn them into ``{'success': False, 'error': message}`` acks and HTTP routes
into JSON error bodies; they never escape a handler.
"""


class DinderError(Exception):
    code = 'INTERNAL_ERROR'
    message = 'An unexpected error occurred'
    http_status = 500

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class SessionNotFound(DinderError):
    code = 'SESSION_NOT_FOUND'
    message = 'Session not found or has expired'
    http_status = 404


class SessionFull(DinderError):
    code = 'SESSION_FULL'
    message = 'Session is full (maximum 4 participants)'
    http_status = 403


class AlreadySubmitted(DinderError):
    code = 'ALREADY_SUBMITTED'
    message = 'You have already submitted your selections'
    http_status = 409


class InvalidOptions(DinderError):
    code = 'INVALID_OPTIONS'
    message = 'One or more selected options are invalid'
    http_status = 400


class NotInSession(DinderError):
    code = 'NOT_IN_SESSION'
    message = 'You are not a participant in this session'
    http_status = 403


class SessionComplete(DinderError):
    code = 'SESSION_COMPLETE'
    message = 'Results are already in; restart the session to choose again'
    http_status = 409


class CodeGenerationExhausted(RuntimeError):
    """No free session code after the configured number of attempts."""
