import json
import logging
import os

import firebase_admin
from firebase_admin import auth, credentials, firestore
from flask import current_app, request

from study_companion.errors import StorageUnavailableError
from study_companion.services import auth_service
from study_companion.services.generation_client import GenerationClient
from study_companion.services.group_service import PendingBreakdownTracker
from study_companion.services.translation_service import TranslationCache
from study_companion.services.video_service import YouTubeClient

logger = logging.getLogger('study_companion')

EXTENSION_KEY = 'study_companion'
FIREBASE_CREDENTIALS_FILE = 'firebase-credentials.json'


def init_firestore(config):
    """Return a Firestore client, or None when credentials are unavailable."""
    try:
        if os.path.exists(FIREBASE_CREDENTIALS_FILE):
            cred = credentials.Certificate(FIREBASE_CREDENTIALS_FILE)
        else:
            if not config.firebase_credentials:
                raise ValueError("FIREBASE_CREDENTIALS is not set and firebase-credentials.json was not found.")
            cred = credentials.Certificate(json.loads(config.firebase_credentials))
        if not firebase_admin._apps:
            firebase_admin.initialize_app(cred)
        return firestore.client()
    except Exception as e:
        logger.info(f"Firebase initialization skipped: {e}")
        return None


def init_extensions(app, config, db=None) -> None:
    state = app.extensions.setdefault(EXTENSION_KEY, {})
    state['config'] = config
    state['generation_client'] = GenerationClient(
        config.gemini_api_key,
        model=config.gemini_model,
        timeout_seconds=config.generation_timeout_seconds,
        max_attempts=config.upstream_max_attempts,
    )
    state['video_client'] = YouTubeClient(
        config.youtube_api_key,
        timeout_seconds=config.video_search_timeout_seconds,
        max_attempts=config.upstream_max_attempts,
    )
    state['db'] = db if db is not None else init_firestore(config)
    state['auth_module'] = auth
    state['translation_cache'] = TranslationCache()
    state['pending_breakdowns'] = PendingBreakdownTracker(ttl_seconds=config.pending_breakdown_ttl_seconds)
    if not config.gemini_api_key:
        logger.info("GEMINI_API_KEY not set; generation routes will return 500.")
    if not config.youtube_api_key:
        logger.info("YOUTUBE_API_KEY not set; video routes will return 500.")


def get_extension(name):
    return current_app.extensions[EXTENSION_KEY][name]


def require_db():
    db = get_extension('db')
    if db is None:
        raise StorageUnavailableError('Database unavailable')
    return db


def current_user():
    return auth_service.require_user(request, get_extension('auth_module'), logger)
