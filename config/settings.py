import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class ConfigurationError(RuntimeError):
    """Raised at startup when required configuration is missing."""


DEFAULT_SECRET_KEY = 'your-super-secret-key-change-me-in-production'
SECRET_KEY = os.environ.get('SECRET_KEY', DEFAULT_SECRET_KEY)

# Tokens are issued by the identity provider; falls back to SECRET_KEY.
# The built-in default is refused at startup.
AUTH_JWT_SECRET = os.environ.get('AUTH_JWT_SECRET', SECRET_KEY)
AUTH_JWT_ALGORITHM = os.environ.get('AUTH_JWT_ALGORITHM', 'HS256')
AUTH_COOKIE_NAME = os.environ.get('AUTH_COOKIE_NAME', 'session_token')

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

# Database Configuration
DATABASE_URL = os.environ.get('DATABASE_URL')

# Database Pool Settings (ignored for SQLite)
DATABASE_POOL_OPTIONS = {
    'pool_size': 10,
    'pool_recycle': 280,
    'pool_pre_ping': True,
    'pool_timeout': 30,
    'max_overflow': 5
}

# LLM Settings
LLM_PROVIDER = (os.environ.get('LLM_PROVIDER') or 'openai').strip().lower()
LLM_API_KEY = os.environ.get('LLM_API_KEY') or os.environ.get('OPENAI_API_KEY')
LLM_MODEL = (os.environ.get('LLM_MODEL') or '').strip() or None
LLM_BASE_URL = (os.environ.get('LLM_BASE_URL') or '').strip() or None
LLM_MAX_TOKENS = int(os.environ.get('LLM_MAX_TOKENS', '2048'))
LLM_HTTP_TIMEOUT_SECONDS = int(os.environ.get('LLM_HTTP_TIMEOUT_SECONDS', '60'))

# Number of previous turns sent along with a new prompt
CONVERSATION_HISTORY_LIMIT = int(os.environ.get('CONVERSATION_HISTORY_LIMIT', '10'))

# CORS Settings
CORS_ORIGINS = [
    'http://localhost:3000',  # Development
    'http://localhost:5173',  # Vite dev server
    os.environ.get('FRONTEND_URL', ''),  # From environment variable
]

# Clean empty strings from CORS_ORIGINS
CORS_ORIGINS = [origin for origin in CORS_ORIGINS if origin]


def engine_options_for(database_url):
    """Pool options only make sense for server databases."""
    if database_url and database_url.startswith('sqlite'):
        return {}
    return dict(DATABASE_POOL_OPTIONS)


def validate_settings(database_url=DATABASE_URL, llm_api_key=LLM_API_KEY,
                      auth_jwt_secret=AUTH_JWT_SECRET):
    """Fail fast when process-wide configuration is missing."""
    missing = []
    if not database_url:
        missing.append('DATABASE_URL')
    if not llm_api_key:
        missing.append('LLM_API_KEY')
    if not auth_jwt_secret or auth_jwt_secret == DEFAULT_SECRET_KEY:
        missing.append('AUTH_JWT_SECRET')
    if missing:
        raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")
