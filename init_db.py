"""
Initialize database - create all tables directly, without Alembic.

For local SQLite runs; deployed databases are migrated with ``alembic upgrade head``.
"""
from pathlib import Path

# Load .env
from dotenv import load_dotenv
load_dotenv(Path(__file__).parent / ".env")

from w3pets.database.connection import init_db

if __name__ == "__main__":
    print("Creating database tables...")
    init_db()
    print("Database initialized successfully")
