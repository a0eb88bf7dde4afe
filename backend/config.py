import os


def _csv(value):
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    REDIS_URL = os.environ.get('REDIS_URL') or 'redis://localhost:6379/0'
    FRONTEND_URL = os.environ.get('FRONTEND_URL') or 'http://localhost:3000'
    CORS_ORIGINS = _csv(os.environ.get('CORS_ORIGINS', '')) or [
        FRONTEND_URL,
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    # Inactivity window applied to every key of a session (seconds)
    SESSION_TTL_SEC = int(os.environ.get('SESSION_TTL_SEC', '1800'))
    MAX_PARTICIPANTS = int(os.environ.get('MAX_PARTICIPANTS', '4'))
    SESSION_CODE_MAX_ATTEMPTS = int(os.environ.get('SESSION_CODE_MAX_ATTEMPTS', '10'))
    # Listen for store key expiry and tell connected clients
    EXPIRY_NOTIFIER_ENABLED = os.environ.get('EXPIRY_NOTIFIER_ENABLED', '1').lower() not in ('0', 'false', 'no')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
