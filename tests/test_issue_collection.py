from datetime import datetime, timedelta

import pytest
from sqlalchemy import text

from app_models import Issue
from services import issue_collection
from services.issue_collection import assign_issue_to_collection

BASE_TIME = datetime(2026, 3, 1, 12, 0, 0)


@pytest.fixture
def add_issue(db):
    def _add(
        coordinate="23.8103,90.4125",
        minutes=0,
        validation=True,
        departments='["fire"]',
        reason="Photo shows fire at the market",
        summary="Flames rising from a market stall",
        same_collection=None,
    ):
        issue = Issue(
            coordinate=coordinate,
            description="report",
            validation=validation,
            assigned_department=departments,
            reason_text=reason,
            description_pic_ai=summary,
            same_collection=same_collection,
            created_at=BASE_TIME + timedelta(minutes=minutes),
        )
        db.add(issue)
        db.commit()
        db.refresh(issue)
        return issue

    return _add


def test_groups_nearby_report_with_shared_department(db, add_issue):
    first = add_issue()
    second = add_issue(coordinate="23.8106,90.4127", minutes=5)

    result = assign_issue_to_collection(db, second.id)

    assert result.matched
    assert result.head_id == first.id
    db.refresh(second)
    assert second.same_collection == str(first.id)


def test_member_of_existing_collection_points_at_head(db, add_issue):
    head = add_issue()
    member = add_issue(minutes=2, same_collection=str(head.id))
    newest = add_issue(minutes=4)

    # the head itself is considered first, so nudge it out of range
    head.coordinate = "23.9000,90.5000"
    db.commit()

    result = assign_issue_to_collection(db, newest.id)
    assert result.matched
    assert result.candidate_id == member.id
    assert result.head_id == head.id


def test_head_does_not_join_its_own_collection(db, add_issue):
    head = add_issue()
    add_issue(minutes=3, same_collection=str(head.id))

    result = assign_issue_to_collection(db, head.id)
    assert not result.matched
    assert result.reason == "no_match"
    db.refresh(head)
    assert head.same_collection is None


def test_different_departments_never_group(db, add_issue):
    add_issue(departments='["water"]')
    second = add_issue(minutes=1, departments='["fire"]')
    assert assign_issue_to_collection(db, second.id).reason == "no_match"


def test_disjoint_categories_never_group(db, add_issue):
    add_issue(reason="Large pothole on the road", summary="Cracked asphalt")
    second = add_issue(minutes=1, reason="Fire at the market", summary="Smoke and flames")
    assert assign_issue_to_collection(db, second.id).reason == "no_match"


def test_too_far_apart(db, add_issue):
    add_issue(coordinate="23.8200,90.4125")
    second = add_issue(minutes=1)
    assert assign_issue_to_collection(db, second.id).reason == "no_match"


def test_outside_time_window(db, add_issue):
    add_issue()
    second = add_issue(minutes=45)
    assert assign_issue_to_collection(db, second.id).reason == "no_match"


def test_unvalidated_candidate_is_ignored(db, add_issue):
    add_issue(validation=False)
    second = add_issue(minutes=1)
    assert assign_issue_to_collection(db, second.id).reason == "no_match"


def test_early_exits(db, add_issue):
    assert assign_issue_to_collection(db, 999).reason == "not_found"

    unvalidated = add_issue(validation=False)
    assert assign_issue_to_collection(db, unvalidated.id).reason == "not_validated"

    no_coords = add_issue(coordinate="")
    assert assign_issue_to_collection(db, no_coords.id).reason == "no_coordinates"

    silent = add_issue(departments=None, reason=None, summary=None)
    assert assign_issue_to_collection(db, silent.id).reason == "insufficient_signals"


def test_text_only_match_needs_ai_confirmation(db, monkeypatch, add_issue):
    first = add_issue(departments=None)
    second = add_issue(minutes=2, departments=None)

    # no API key: the tie-break is undecided and nothing is grouped
    assert assign_issue_to_collection(db, second.id).reason == "no_match"

    decisions = []

    def confirm(**kwargs):
        decisions.append(kwargs)
        return True

    monkeypatch.setattr(issue_collection, "confirm_collection_with_ai", confirm)
    result = assign_issue_to_collection(db, second.id)
    assert result.matched
    assert result.head_id == first.id
    assert decisions[0]["base_categories"] == ["fire"]


def test_dry_run_does_not_write(db, add_issue):
    first = add_issue()
    second = add_issue(minutes=5)

    result = assign_issue_to_collection(db, second.id, dry_run=True)
    assert result.matched and result.dry_run
    assert result.head_id == first.id
    db.refresh(second)
    assert second.same_collection is None


def test_ai_confirmation_parses_decision(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(
        issue_collection, "chat_completion",
        lambda messages, **kwargs: '{"same_collection": false, "rationale": "different places"}',
    )
    args = dict(
        base_reason="fire", base_summary=None, base_categories=["fire"], base_departments=["fire"],
        candidate_reason="fire", candidate_summary=None, candidate_categories=["fire"], candidate_departments=[],
    )
    assert issue_collection.confirm_collection_with_ai(**args) is False

    monkeypatch.setattr(issue_collection, "chat_completion", lambda messages, **kwargs: "not json")
    assert issue_collection.confirm_collection_with_ai(**args) is None


def test_older_report_never_joins_a_newer_one(db, add_issue):
    older = add_issue()
    add_issue(minutes=5)

    result = assign_issue_to_collection(db, older.id)
    assert not result.matched
    assert result.reason == "no_match"
    db.refresh(older)
    assert older.same_collection is None


def test_equal_timestamps_lower_id_leads(db, add_issue):
    first = add_issue(minutes=3)
    second = add_issue(minutes=3)

    assert assign_issue_to_collection(db, first.id, dry_run=True).reason == "no_match"
    result = assign_issue_to_collection(db, second.id)
    assert result.matched
    assert result.head_id == first.id


def test_exactly_thirty_minutes_apart_still_groups(db, add_issue):
    first = add_issue()
    second = add_issue(minutes=30)
    result = assign_issue_to_collection(db, second.id)
    assert result.matched
    assert result.head_id == first.id


def test_radius_boundary(db, monkeypatch, add_issue):
    add_issue()
    second = add_issue(minutes=1)

    monkeypatch.setattr(issue_collection, "coordinate_distance", lambda a, b: 100.0)
    assert assign_issue_to_collection(db, second.id, dry_run=True).matched

    monkeypatch.setattr(issue_collection, "coordinate_distance", lambda a, b: 100.01)
    assert assign_issue_to_collection(db, second.id, dry_run=True).reason == "no_match"


def test_second_precision_timestamps_at_window_edge(db, add_issue):
    first = add_issue()
    second = add_issue()
    # timestamps written by the database default carry no fractional part
    db.execute(text("UPDATE issues SET created_at = :ts WHERE id = :id"), {"ts": "2026-03-01 11:30:00", "id": first.id})
    db.execute(text("UPDATE issues SET created_at = :ts WHERE id = :id"), {"ts": "2026-03-01 12:00:00", "id": second.id})
    db.commit()
    db.expire_all()

    result = assign_issue_to_collection(db, second.id)
    assert result.matched
    assert result.head_id == first.id
