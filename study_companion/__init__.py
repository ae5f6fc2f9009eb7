import logging
import uuid

from dotenv import load_dotenv
from flask import Flask, g, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from .config import load_config
from .errors import StudyCompanionError
from .extensions import init_extensions
from .logging_config import configure_logging
from .services.upload_service import MAX_SYLLABUS_UPLOAD_BYTES

logger = logging.getLogger('study_companion')

# Multipart overhead on top of the largest accepted syllabus file.
MAX_REQUEST_BYTES = MAX_SYLLABUS_UPLOAD_BYTES + 1024 * 1024


def init_sentry(config):
    if not config.sentry_dsn:
        return False
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration

    sentry_sdk.init(
        dsn=config.sentry_dsn,
        integrations=[FlaskIntegration()],
        send_default_pii=False,
        environment=config.sentry_environment,
        release=config.sentry_release,
    )
    return True


def create_app(config=None, db=None):
    """App factory entrypoint.

    ``config`` and ``db`` may be injected by tests; otherwise they come from
    the environment and Firebase credentials.
    """
    load_dotenv()
    config = config or load_config()
    configure_logging(config.log_level)
    init_sentry(config)

    app = Flask(__name__)
    app.secret_key = config.flask_secret_key or uuid.uuid4().hex
    app.config['MAX_CONTENT_LENGTH'] = MAX_REQUEST_BYTES
    init_extensions(app, config, db=db)

    from .blueprints import generation_bp, groups_bp, notes_bp, syllabus_bp, translation_bp, videos_bp

    for blueprint in (generation_bp, translation_bp, videos_bp, syllabus_bp, groups_bp, notes_bp):
        app.register_blueprint(blueprint)

    @app.before_request
    def attach_request_id():
        g.request_id = str(request.headers.get('X-Request-ID', '') or '').strip()[:120] or uuid.uuid4().hex

    @app.after_request
    def attach_request_id_header(response):
        request_id = str(getattr(g, 'request_id', '') or '').strip()
        if request_id:
            response.headers['X-Request-ID'] = request_id
        return response

    @app.errorhandler(StudyCompanionError)
    def handle_study_companion_error(error):
        if error.status_code >= 500:
            logger.warning(f"{request.method} {request.path} failed: {error}")
        return jsonify({'error': str(error)}), error.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_request_too_large(error):
        return jsonify({'error': 'Upload too large'}), 413

    @app.route('/healthz')
    def healthz():
        return jsonify({'status': 'ok'}), 200

    return app
