"""
Re-run AI analysis for existing issues and clean up their descriptions.
Usage: python -m scripts.backfill_issue_ai [--limit N] [--only-missing] [--delay MS]
"""
import argparse
import re
import sys
import time

from sqlalchemy import or_

from database import SessionLocal
from app_models import Issue
from app_utils.text_match import dump_assigned_departments
from services.issue_ai import analyze_issue

_USER_PREFIX = re.compile(r"^user description:\s*", re.I)
_DESCRIPTION_MARKER = re.compile(r"\bDescription:\s*", re.I)


def truncate(value, length):
    if not isinstance(value, str):
        return value
    return value[:length]


def clean_description(value):
    """
    Strip a leading "User description:" label and anything from a later
    "Description:" marker onwards (older clients appended the AI text there).
    """
    if not value or not isinstance(value, str):
        return value

    text = value.replace("\r\n", "\n").strip()
    text = _USER_PREFIX.sub("", text, count=1)

    marker = _DESCRIPTION_MARKER.search(text)
    if marker:
        text = text[:marker.start()].strip()
    return text


def fetch_issues(db, limit=0, only_missing=False):
    query = db.query(Issue)
    if only_missing:
        query = query.filter(or_(Issue.description_pic_ai.is_(None), Issue.description_pic_ai == ""))
    query = query.order_by(Issue.id.asc())
    if limit > 0:
        query = query.limit(limit)
    return query.all()


def backfill(db, limit=0, only_missing=False, delay_ms=250):
    issues = fetch_issues(db, limit=limit, only_missing=only_missing)
    print(f"Found {len(issues)} issue(s) to process")

    success = 0
    failures = 0

    for issue in issues:
        try:
            if delay_ms > 0:
                time.sleep(delay_ms / 1000.0)

            original = (issue.description or "").strip()
            cleaned = clean_description(issue.description or "")
            ai_result = analyze_issue(cleaned, issue.photo)

            issue.description = cleaned
            issue.assigned_department = dump_assigned_departments(ai_result.assigned_departments)
            issue.description_pic_ai = truncate(ai_result.description_pic_ai or "", 255)
            issue.validation = ai_result.validation
            issue.reason_text = truncate(ai_result.reason or "", 255)
            db.commit()

            success += 1
            flag = "cleaned" if cleaned != original else "unchanged"
            print(f"[OK] Issue {issue.id} updated ({ai_result.source}) [{flag}]")
        except Exception as e:
            db.rollback()
            failures += 1
            print(f"[ERROR] Issue {issue.id} failed: {e}")

    print("Backfill complete.")
    print(f"   Success: {success}")
    print(f"   Failed: {failures}")
    return success, failures


def main(argv=None):
    parser = argparse.ArgumentParser(description="Re-run AI analysis for existing issues")
    parser.add_argument("--limit", type=int, default=0, help="process at most N issues")
    parser.add_argument("--only-missing", action="store_true", help="only issues without an AI description")
    parser.add_argument("--delay", type=int, default=250, help="pause between issues in milliseconds")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        print("Backfill starting...")
        backfill(db, limit=args.limit, only_missing=args.only_missing, delay_ms=args.delay)
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
