import os
from dataclasses import dataclass, field


def _env_str(name, default=''):
    return (os.getenv(name, default) or default).strip()


def _env_float(name, default, minimum=0.1, maximum=600.0):
    raw = _env_str(name, str(default))
    try:
        value = float(raw)
    except ValueError:
        return default
    return min(max(value, minimum), maximum)


def _env_int(name, default, minimum=1, maximum=10):
    raw = _env_str(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        return default
    return min(max(value, minimum), maximum)


@dataclass(frozen=True)
class AppConfig:
    """Central config object, read from the environment at load time."""

    flask_secret_key: str = field(default_factory=lambda: _env_str('FLASK_SECRET_KEY'))
    log_level: str = field(default_factory=lambda: _env_str('LOG_LEVEL', 'INFO').upper())
    gemini_api_key: str = field(default_factory=lambda: _env_str('GEMINI_API_KEY'))
    gemini_model: str = field(default_factory=lambda: _env_str('GEMINI_MODEL', 'gemini-2.0-flash'))
    youtube_api_key: str = field(default_factory=lambda: _env_str('YOUTUBE_API_KEY'))
    generation_timeout_seconds: float = field(default_factory=lambda: _env_float('GENERATION_TIMEOUT_SECONDS', 90.0))
    video_search_timeout_seconds: float = field(default_factory=lambda: _env_float('VIDEO_SEARCH_TIMEOUT_SECONDS', 10.0))
    upstream_max_attempts: int = field(default_factory=lambda: _env_int('UPSTREAM_MAX_ATTEMPTS', 3))
    pending_breakdown_ttl_seconds: float = field(default_factory=lambda: _env_float('PENDING_BREAKDOWN_TTL_SECONDS', 120.0, maximum=3600.0))
    firebase_credentials: str = field(default_factory=lambda: _env_str('FIREBASE_CREDENTIALS'))
    sentry_dsn: str = field(default_factory=lambda: _env_str('SENTRY_DSN'))
    sentry_environment: str = field(default_factory=lambda: _env_str('SENTRY_ENVIRONMENT', os.getenv('FLASK_ENV', 'production') or 'production'))
    sentry_release: str = field(default_factory=lambda: _env_str('SENTRY_RELEASE', 'study-companion'))


def is_dev_like_environment():
    runtime_env = (
        os.getenv('SENTRY_ENVIRONMENT')
        or os.getenv('FLASK_ENV')
        or os.getenv('ENV')
        or ('production' if os.getenv('RENDER') else 'development')
    ).strip().lower()
    return runtime_env in {'development', 'dev', 'local', 'test'}


def load_config() -> AppConfig:
    config = AppConfig()
    if not is_dev_like_environment() and not config.flask_secret_key:
        raise RuntimeError('FLASK_SECRET_KEY must be set in non-development environments.')
    return config
