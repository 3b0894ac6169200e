"""
Flask application factory.

Creates and configures the app, registers blueprints, the ingestion error
handler, and the shared rate-limit gates.
"""
import logging
from flask import Flask, jsonify

logger = logging.getLogger('app')


def create_app(operator_policy=None, config=None):
    """
    Create and configure the Flask application.

    Args:
        operator_policy: OperatorPolicy deciding who may call admin routes.
                         Defaults to one built from OPERATOR_EMAILS.
        config:          Optional overrides applied on top of app.config.
    """
    from app.logging_config import configure_logging
    from app.config import GOOGLE_API_KEY, CRON_SECRET, AUTH_IDENTITY_HEADER
    from app.errors import IngestionError
    from app.services.access import OperatorPolicy

    app = Flask(__name__)

    configure_logging(app)

    app.config.update(
        GOOGLE_API_KEY=GOOGLE_API_KEY,
        CRON_SECRET=CRON_SECRET,
        AUTH_IDENTITY_HEADER=AUTH_IDENTITY_HEADER,
    )
    if config:
        app.config.update(config)

    app.extensions['operator_policy'] = operator_policy or OperatorPolicy.from_config()

    if not app.config.get('CRON_SECRET'):
        logger.warning("CRON_SECRET not set — cron endpoints accept unauthenticated calls")
    if not app.config.get('GOOGLE_API_KEY'):
        logger.warning("GOOGLE_API_KEY not set — discovery and refresh will fail upstream")

    @app.errorhandler(IngestionError)
    def handle_ingestion_error(e):
        return jsonify({'error': str(e)}), e.status_code

    # Register blueprints
    from app.routes.admin import bp as admin_bp
    from app.routes.cron import bp as cron_bp
    from app.routes.health import bp as health_bp

    app.register_blueprint(admin_bp)
    app.register_blueprint(cron_bp)
    app.register_blueprint(health_bp)

    # Shared query spacing for the YouTube API (Redis-backed across workers)
    from app.extensions import redis_client
    from app.services.rate_limiter import init_gates
    init_gates(redis_client)

    # Import models so Base.metadata knows about them.
    # Schema is managed by Alembic — no create_all() call.
    import importlib
    importlib.import_module('app.models.discovered_creator')
    importlib.import_module('app.models.creator_snapshot')
    importlib.import_module('app.models.discovery_rule')

    return app
