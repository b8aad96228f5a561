"""
Issue Collection Service

Groups reports that describe the same real-world incident under the
earliest report of the cluster (the collection head). Members point at
the head through issues.same_collection.

RULES (first accepted candidate wins):
1. Both reports validated, <= 100 m apart and <= 30 minutes apart, the
   candidate being the earlier of the two.
2. Different departments on both sides -> never grouped.
3. Disjoint incident categories on both sides -> never grouped.
4. Shared department -> grouped.
5. Textual match only -> grouped if the AI tie-break says so.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from app_models import Issue
from app_utils.constants import MATCH_RADIUS_METERS, MATCH_WINDOW_MINUTES
from app_utils.geo import parse_coordinate, coordinate_distance
from app_utils.text_match import (
    detect_categories,
    normalize_reason,
    parse_assigned_departments,
    reasons_match,
)
from services.openai_client import OpenAIError, chat_completion, extract_json, get_api_key

logger = logging.getLogger(__name__)


@dataclass
class CollectionResult:
    matched: bool
    reason: Optional[str] = None
    head_id: Optional[int] = None
    candidate_id: Optional[int] = None
    dry_run: bool = False


def _as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _join_or(values, empty):
    return ", ".join(values) if values else empty


def confirm_collection_with_ai(
    base_reason: Optional[str],
    base_summary: Optional[str],
    base_categories: List[str],
    base_departments: List[str],
    candidate_reason: Optional[str],
    candidate_summary: Optional[str],
    candidate_categories: List[str],
    candidate_departments: List[str],
) -> Optional[bool]:
    """
    Ask the model whether two reports are the same incident.
    Returns True/False, or None when no decision could be obtained.
    """
    if not get_api_key():
        return None

    prompt = (
        "Two municipal issue reports might refer to the same real-world incident. "
        "Only group them when they clearly describe the SAME type of problem at the SAME location/time. "
        "Never group different incident types (e.g., fire vs pothole). "
        'Respond ONLY with JSON {"same_collection": true|false, "rationale": string<=200}.\n'
        f"Issue A reason: {base_reason or '<empty>'}\n"
        f"Issue A summary: {base_summary or '<empty>'}\n"
        f"Issue A categories: {_join_or(base_categories, '<none>')}\n"
        f"Issue A departments: {_join_or(base_departments, '<none>')}\n"
        f"Issue B reason: {candidate_reason or '<empty>'}\n"
        f"Issue B summary: {candidate_summary or '<empty>'}\n"
        f"Issue B categories: {_join_or(candidate_categories, '<none>')}\n"
        f"Issue B departments: {_join_or(candidate_departments, '<none>')}"
    )

    try:
        content = chat_completion(
            [
                {"role": "system", "content": "You compare municipal issue descriptions. Always answer with compact JSON."},
                {"role": "user", "content": [{"type": "text", "text": prompt}]},
            ],
            temperature=0,
            max_tokens=120,
            json_mode=True,
        )
        parsed = extract_json(content)
    except (OpenAIError, ValueError) as e:
        logger.warning(f"[collection-service] AI comparison failed: {getattr(e, 'response_data', None) or e}")
        return None

    decision = parsed.get("same_collection")
    return decision if isinstance(decision, bool) else None


def _resolve_head_id(candidate: Issue) -> int:
    if candidate.same_collection:
        try:
            head_id = int(candidate.same_collection)
        except (TypeError, ValueError):
            head_id = 0
        if head_id > 0:
            return head_id
    return candidate.id


def assign_issue_to_collection(
    db: Session,
    issue_id: int,
    dry_run: bool = False,
    require_validation: bool = True,
) -> CollectionResult:
    issue = db.query(Issue).filter(Issue.id == issue_id).first()
    if not issue:
        return CollectionResult(matched=False, reason="not_found")

    if require_validation and not issue.validation:
        return CollectionResult(matched=False, reason="not_validated")

    issue_coords = parse_coordinate(issue.coordinate)
    if not issue_coords:
        return CollectionResult(matched=False, reason="no_coordinates")

    normalized_reason = normalize_reason(issue.reason_text)
    normalized_summary = normalize_reason(issue.description_pic_ai)
    current_assigned = parse_assigned_departments(issue.assigned_department)
    base_categories = detect_categories(issue.reason_text, issue.description_pic_ai)
    if not normalized_reason and not normalized_summary and not current_assigned:
        return CollectionResult(matched=False, reason="insufficient_signals")

    created_at = _as_naive_utc(issue.created_at) or datetime.utcnow()
    window = timedelta(minutes=MATCH_WINDOW_MINUTES)

    candidates = (
        db.query(Issue)
        .filter(Issue.id != issue_id)
        # widened by a second; second-precision text sorts below the bound on SQLite
        .filter(Issue.created_at >= created_at - window - timedelta(seconds=1))
        .order_by(Issue.created_at.asc(), Issue.id.asc())
        .all()
    )

    for candidate in candidates:
        candidate_coords = parse_coordinate(candidate.coordinate)
        if not candidate_coords:
            continue

        candidate_created = _as_naive_utc(candidate.created_at)
        if candidate_created:
            if abs(created_at - candidate_created) > window:
                continue
            # only earlier reports can lead a collection
            if (candidate_created, candidate.id) > (created_at, issue_id):
                continue

        distance = coordinate_distance(issue_coords, candidate_coords)
        if distance > MATCH_RADIUS_METERS:
            continue

        if not candidate.validation:
            continue

        candidate_reason = normalize_reason(candidate.reason_text)
        candidate_summary = normalize_reason(candidate.description_pic_ai)
        candidate_assigned = parse_assigned_departments(candidate.assigned_department)
        candidate_categories = detect_categories(candidate.reason_text, candidate.description_pic_ai)

        assigned_overlap = bool(current_assigned and candidate_assigned) and any(
            dept in candidate_assigned for dept in current_assigned
        )
        if current_assigned and candidate_assigned and not assigned_overlap:
            continue

        if base_categories and candidate_categories and not (base_categories & candidate_categories):
            continue

        textual_match = reasons_match(normalized_reason, candidate_reason) or reasons_match(
            normalized_summary, candidate_summary
        )
        if not assigned_overlap and not textual_match:
            continue

        allow_grouping = assigned_overlap
        if not allow_grouping:
            decision = confirm_collection_with_ai(
                base_reason=issue.reason_text,
                base_summary=issue.description_pic_ai,
                base_categories=sorted(base_categories),
                base_departments=current_assigned,
                candidate_reason=candidate.reason_text,
                candidate_summary=candidate.description_pic_ai,
                candidate_categories=sorted(candidate_categories),
                candidate_departments=candidate_assigned,
            )
            allow_grouping = decision is True

        if not allow_grouping:
            continue

        head_id = _resolve_head_id(candidate)
        if head_id == issue_id:
            continue

        if not dry_run:
            issue.same_collection = str(head_id)
            db.commit()

        logger.info(f"[collection-service] Issue {issue_id} grouped with head {head_id} (via {candidate.id})")
        return CollectionResult(matched=True, head_id=head_id, candidate_id=candidate.id, dry_run=dry_run)

    return CollectionResult(matched=False, reason="no_match")
