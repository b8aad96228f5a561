"""
Drop and recreate every LumiNos table. All data is lost.
Usage: python -m scripts.reset_db --yes
"""
import argparse
import sys

from database import engine, Base
import app_models  # noqa: F401


def reset():
    print(f"Resetting database {engine.url.render_as_string(hide_password=True)}...")
    try:
        Base.metadata.drop_all(bind=engine)
        print("[OK] Tables dropped")
        Base.metadata.create_all(bind=engine)
        print("[OK] Tables created")
    except Exception as e:
        print(f"[ERROR] Database reset failed: {e}")
        sys.exit(1)
    print("\n[SUCCESS] Database reset completed successfully!")


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--yes", action="store_true", help="confirm that all data may be deleted")
    args = parser.parse_args(argv)

    if not args.yes:
        print("Refusing to reset without --yes")
        return 1

    reset()
    return 0


if __name__ == "__main__":
    sys.exit(main())
