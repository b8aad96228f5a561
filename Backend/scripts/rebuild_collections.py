"""
Recompute issue collection assignments for existing records.
Usage: python -m scripts.rebuild_collections [--limit N] [--dry-run] [--keep-existing]
"""
import argparse
import sys

from database import SessionLocal
from app_models import Issue
from services.issue_collection import assign_issue_to_collection


def rebuild(db, limit=0, dry_run=False, keep_existing=False):
    print("Rebuilding collections" + (" (dry run)" if dry_run else ""))

    if not dry_run and not keep_existing:
        print("Clearing previous collection assignments...")
        db.query(Issue).update({Issue.same_collection: None}, synchronize_session=False)
        db.commit()
    elif dry_run:
        print("Dry run: existing collection values will not be changed.")
    else:
        print("Keeping existing same_collection values; only missing ones will be filled.")

    query = db.query(Issue.id).order_by(Issue.created_at.asc(), Issue.id.asc())
    if keep_existing:
        query = query.filter(Issue.same_collection.is_(None))
    if limit > 0:
        query = query.limit(limit)
    issue_ids = [row.id for row in query.all()]
    print(f"Processing {len(issue_ids)} issue(s)...")

    matched = 0
    skipped = 0
    failures = 0

    for issue_id in issue_ids:
        try:
            result = assign_issue_to_collection(db, issue_id, dry_run=dry_run, require_validation=True)
        except Exception as e:
            db.rollback()
            failures += 1
            print(f"[ERROR] Issue {issue_id} failed: {e}")
            continue

        if result.matched:
            matched += 1
            print(f"[OK] Issue {issue_id} grouped with head {result.head_id}" + (" (dry run)" if dry_run else ""))
        else:
            skipped += 1
            if result.reason and result.reason != "no_match":
                print(f"[SKIP] Issue {issue_id} skipped ({result.reason})")

    print("Rebuild complete.")
    print(f"   Matched: {matched}")
    print(f"   Skipped: {skipped}")
    print(f"   Failed: {failures}")
    return {"matched": matched, "skipped": skipped, "failed": failures}


def main(argv=None):
    parser = argparse.ArgumentParser(description="Recompute issue collection assignments")
    parser.add_argument("--limit", type=int, default=0, help="process at most N issues")
    parser.add_argument("--dry-run", action="store_true", help="report matches without writing them")
    parser.add_argument("--keep-existing", action="store_true", help="only fill issues without a collection")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        rebuild(db, limit=args.limit, dry_run=args.dry_run, keep_existing=args.keep_existing)
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
