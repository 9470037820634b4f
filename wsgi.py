# wsgi.py
from app import create_app
from services.db_config import db
import logging
import os

logger = logging.getLogger(__name__)

app = create_app()

# Create missing tables; schema changes go through alembic
with app.app_context():
    db.create_all()
    logger.info("Database tables created")

# Server configuration for local development
if __name__ == '__main__':
    port = int(os.getenv('FLASK_PORT', 5001))
    debug = os.getenv('FLASK_DEBUG', 'True').lower() == 'true'
    logger.info(f"Starting development server on port {port}")
    app.run(debug=debug, port=port, host='0.0.0.0')
