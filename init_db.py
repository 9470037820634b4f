# Run: python init_db.py
from app import create_app
from services.db_config import db
from services.seed import seed_default_templates

app = create_app()

with app.app_context():
    print("Creating missing tables...")
    db.create_all()
    created = seed_default_templates()
    print(f"Done! Seeded {created} default templates.")
