from datetime import datetime, timedelta

from app_models import Issue, User
from scripts import backfill_issue_ai, rebuild_collections, reset_db, setup_db
from scripts.backfill_issue_ai import clean_description

BASE_TIME = datetime(2026, 3, 1, 9, 0, 0)


def add_issue(db, minutes, **kwargs):
    values = dict(
        coordinate="23.8103,90.4125",
        description="Fire at the market",
        validation=True,
        assigned_department='["fire"]',
        reason_text="Photo shows fire at the market",
        description_pic_ai="Flames at a stall",
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )
    values.update(kwargs)
    issue = Issue(**values)
    db.add(issue)
    db.commit()
    db.refresh(issue)
    return issue


def test_clean_description():
    assert clean_description("User description: Broken pipe") == "Broken pipe"
    assert clean_description("Broken pipe\r\nDescription: water everywhere") == "Broken pipe"
    assert clean_description("Plain text") == "Plain text"
    assert clean_description(None) is None


def test_backfill_updates_issues(db):
    messy = add_issue(db, 0, description="User description: Water leak Description: AI text", description_pic_ai=None)
    done = add_issue(db, 1, description_pic_ai="already analysed")

    success, failures = backfill_issue_ai.backfill(db, only_missing=True, delay_ms=0)

    assert (success, failures) == (1, 0)
    db.refresh(messy)
    db.refresh(done)
    assert messy.description == "Water leak"
    assert messy.description_pic_ai == "No photo provided for analysis."
    assert messy.validation is False
    assert messy.assigned_department == '["water"]'
    assert done.description_pic_ai == "already analysed"


def test_rebuild_collections(db, capsys):
    first = add_issue(db, 0)
    second = add_issue(db, 5)
    far = add_issue(db, 6, coordinate="24.0,91.0", same_collection="12345")

    counts = rebuild_collections.rebuild(db, dry_run=True)
    assert counts["matched"] == 1
    db.refresh(far)
    assert far.same_collection == "12345"

    counts = rebuild_collections.rebuild(db)
    assert counts == {"matched": 1, "skipped": 2, "failed": 0}
    for issue in (first, second, far):
        db.refresh(issue)
    assert first.same_collection is None
    assert second.same_collection == str(first.id)
    assert far.same_collection is None
    assert "Rebuild complete." in capsys.readouterr().out


def test_rebuild_keep_existing_only_fills_missing(db):
    first = add_issue(db, 0)
    second = add_issue(db, 5, same_collection="777")

    counts = rebuild_collections.rebuild(db, keep_existing=True)
    assert counts["matched"] == 0
    db.refresh(second)
    assert second.same_collection == "777"
    db.refresh(first)
    assert first.same_collection is None


def test_reset_requires_confirmation(db, capsys):
    assert reset_db.main([]) == 1
    assert "Refusing" in capsys.readouterr().out


def test_setup_and_reset(db):
    db.close()
    setup_db.setup()
    assert db.query(User).filter(User.role == "admin").count() == 1
    setup_db.setup()
    assert db.query(User).filter(User.role == "admin").count() == 1

    assert reset_db.main(["--yes"]) == 0
    db.expire_all()
    assert db.query(User).count() == 0
