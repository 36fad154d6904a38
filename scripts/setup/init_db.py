# scripts/setup/init_db.py
"""
Initialize database — creates all tables.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from sqlalchemy import inspect
from vdc.config import settings
from vdc.database import Database
from vdc.exceptions import DatabaseUnavailableError


def main():
    print("🗄️  VDC DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    db = Database(settings.DATABASE_URL)
    try:
        db.connect()
        print("✅ Database connection OK")
    except DatabaseUnavailableError as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nPossible causes:")
        print("  1. Database server is not running")
        print("  2. Firewall is blocking the connection")
        print("  3. User/password in .env is incorrect")
        print("  4. Database name is incorrect")
        sys.exit(1)

    print("\n📋 Creating tables...")
    db.create_tables()
    print("✅ All tables created")

    tables = sorted(inspect(db.engine).get_table_names())
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    db.dispose()
    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn vdc.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT}")


if __name__ == "__main__":
    main()
