"""
Initialize database — creates all tables.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import create_tables, engine
from app.config import settings
from sqlalchemy import inspect, text


def main():
    print("🗄️  Parking DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nCheck DATABASE_URL in .env (SQLite needs a writable directory).")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    print("✅ All tables created")

    inspector = inspect(engine)
    tables = sorted(inspector.get_table_names())
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        indexes = ", ".join(ix["name"] for ix in inspector.get_indexes(t))
        print(f"   ✓ {t}  [{indexes}]")

    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn app.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()
