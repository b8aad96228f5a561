"""
Database setup: create all tables and seed the fixed admin account.
Safe to run repeatedly.
"""
import sys

from database import engine, Base, SessionLocal
import app_models  # noqa: F401  (registers the tables on Base)
import crud


def setup():
    print("Setting up database...")
    try:
        Base.metadata.create_all(bind=engine)
        print("[OK] Tables created: " + ", ".join(sorted(Base.metadata.tables)))

        db = SessionLocal()
        try:
            admin = crud.ensure_admin(db)
            print(f"[OK] Admin account ready ({admin.email})")
        finally:
            db.close()

        print("\n[SUCCESS] Database setup completed successfully!")
    except Exception as e:
        print(f"\n[ERROR] Database setup failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    setup()
