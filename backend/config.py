import os


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', '*').split(',') if o.strip()]
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    # Shared room used when a client joins without naming one
    DEFAULT_ROOM_ID = os.environ.get('DEFAULT_ROOM_ID', 'main')
    AUTO_JOIN_ON_CONNECT = _env_bool('AUTO_JOIN_ON_CONNECT', True)
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '6'))
    # Game rules
    GAME_DURATION_SEC = int(os.environ.get('GAME_DURATION_SEC', '300'))
    FLIP_BACK_DELAY_MS = int(os.environ.get('FLIP_BACK_DELAY_MS', '900'))
    BASE_QUESTIONS = int(os.environ.get('BASE_QUESTIONS', '5'))
    # Extra question every N matches. 0 disables.
    BONUS_QUESTION_EVERY = int(os.environ.get('BONUS_QUESTION_EVERY', '3'))
    DECK_PAIRS = int(os.environ.get('DECK_PAIRS', '10'))
    LOG_HISTORY_LIMIT = int(os.environ.get('LOG_HISTORY_LIMIT', '50'))
    MAX_MESSAGE_LENGTH = int(os.environ.get('MAX_MESSAGE_LENGTH', '500'))
