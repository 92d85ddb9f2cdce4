import os


def _env_bool(name, default=False):
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {'1', 'true', 'yes', 'on'}


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///sudoku_dash.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Create tables and seed the puzzle catalog when the app starts
    AUTO_INIT_DB = _env_bool('AUTO_INIT_DB', True)
    # Client/server elapsed time drift (ms) above which a submission is logged
    TIMING_ANOMALY_THRESHOLD_MS = int(os.environ.get('TIMING_ANOMALY_THRESHOLD_MS', '5000'))
    LEADERBOARD_DEFAULT_LIMIT = int(os.environ.get('LEADERBOARD_DEFAULT_LIMIT', '1000'))
    # Reject a second submit for an already completed run (409). Off keeps resubmits re-scoring.
    REJECT_RUN_RESUBMISSION = _env_bool('REJECT_RUN_RESUBMISSION', False)
    # SSE stream: keep-alive comment interval (sec) and per-listener queue bound
    SSE_KEEPALIVE_SEC = int(os.environ.get('SSE_KEEPALIVE_SEC', '15'))
    SSE_QUEUE_SIZE = int(os.environ.get('SSE_QUEUE_SIZE', '16'))
    # Flask-Login honours LOGIN_DISABLED; lets local setups skip the admin sign-in
    LOGIN_DISABLED = _env_bool('ADMIN_LOGIN_DISABLED', False)
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5000,http://127.0.0.1:5000',
        ).split(',')
        if origin.strip()
    ]
