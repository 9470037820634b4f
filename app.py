# app.py
from flask import Flask, jsonify, make_response
from flask_cors import CORS
from sqlalchemy import text
from services.db_config import db
from services.llm_client import CompletionClient, is_llm_configured
from services.schedule_assistant import ScheduleAssistant
from services.seed import seed_default_templates
from services.storage import Storage
from api.extensions import ASSISTANT_KEY, STORAGE_KEY
from api.auth_routes import auth
from api.calendar_routes import calendar_api
from api.ai_routes import ai_api
from api.template_routes import templates_api
from config import settings
import logging

# Register every table with the metadata
from models.user import User  # noqa: F401
from models.calendar import Event  # noqa: F401
from models.assistant_models import AiConversation, ScenarioTemplate  # noqa: F401

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app(test_config=None, completion_client=None):
    """Build the Flask app.

    Missing DATABASE_URL or LLM key raises ConfigurationError here, at
    startup, and so does an unset or default JWT secret. Tests pass their
    own database URI, secret and completion client.
    """
    test_config = dict(test_config or {})
    app = Flask(__name__)

    database_url = test_config.get('SQLALCHEMY_DATABASE_URI', settings.DATABASE_URL)
    jwt_secret = test_config.get('AUTH_JWT_SECRET', settings.AUTH_JWT_SECRET)
    if completion_client is None:
        settings.validate_settings(database_url, settings.LLM_API_KEY, jwt_secret)
        completion_client = CompletionClient.from_settings()
    else:
        settings.validate_settings(database_url, 'injected', jwt_secret)

    # Session cookie carries the identity provider token
    CORS(
        app,
        resources={r"/api/*": {
            "origins": settings.CORS_ORIGINS,
            "methods": ["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
            "allow_headers": ["Authorization", "Content-Type", "X-Requested-With"],
            "supports_credentials": True,
        }},
        intercept_exceptions=False,
    )

    # --- Config ---
    app.config['SQLALCHEMY_DATABASE_URI'] = database_url
    app.config['SQLALCHEMY_ENGINE_OPTIONS'] = settings.engine_options_for(database_url)
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SECRET_KEY'] = settings.SECRET_KEY
    app.config['AUTH_JWT_SECRET'] = jwt_secret
    app.config['AUTH_JWT_ALGORITHM'] = settings.AUTH_JWT_ALGORITHM
    app.config['AUTH_COOKIE_NAME'] = settings.AUTH_COOKIE_NAME
    app.config['CONVERSATION_HISTORY_LIMIT'] = settings.CONVERSATION_HISTORY_LIMIT
    app.config.update(test_config)
    db.init_app(app)

    # --- Services ---
    storage = Storage()
    app.extensions[STORAGE_KEY] = storage
    app.extensions[ASSISTANT_KEY] = ScheduleAssistant(
        storage,
        completion_client,
        history_limit=app.config['CONVERSATION_HISTORY_LIMIT'],
    )

    # --- Blueprints ---
    app.register_blueprint(auth, url_prefix='/api/auth')
    app.register_blueprint(calendar_api, url_prefix='/api')
    app.register_blueprint(ai_api, url_prefix='/api/ai')
    app.register_blueprint(templates_api, url_prefix='/api')

    # --- Error handlers ---
    @app.errorhandler(404)
    def not_found_error(error):
        return make_response(jsonify({"success": False, "message": "Resource not found"}), 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return make_response(jsonify({"success": False, "message": "Method not allowed"}), 405)

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {str(error)}")
        db.session.rollback()
        return make_response(jsonify({"success": False, "message": "Internal server error"}), 500)

    # --- Health check ---
    @app.route('/health')
    def health_check():
        llm = "configured" if is_llm_configured() else "not configured"
        try:
            db.session.execute(text('SELECT 1'))
            return jsonify({"status": "healthy", "database": "connected", "llm": llm})
        except Exception as e:
            logger.error(f"Health check failed: {str(e)}")
            return jsonify({"status": "unhealthy", "database": str(e), "llm": llm}), 500

    @app.cli.command('seed-templates')
    def seed_templates_command():
        """Insert the default scenario templates."""
        db.create_all()
        created = seed_default_templates()
        print(f"Seeded {created} default templates")

    return app
