from app_models import Issue
from app_utils.constants import REWARD_POINTS_PER_ISSUE
from app_utils.text_match import dump_assigned_departments, parse_assigned_departments
from crud import award_reward_points
from services.issue_ai import analyze_issue
from services.issue_collection import assign_issue_to_collection
import logging

logger = logging.getLogger(__name__)


def _truncate(value, length=255):
    if isinstance(value, str) and len(value) > length:
        return value[:length]
    return value


def try_assign_collection(db, issue_id):
    """
    Collection grouping is best effort: failures are logged and rolled back,
    never surfaced to the caller.
    """
    try:
        return assign_issue_to_collection(db, issue_id)
    except Exception as e:
        db.rollback()
        logger.error(f"[collection-service] Grouping failed for issue {issue_id}: {e}")
        return None


def submit_issue_workflow(
    db,
    description,
    coordinate=None,
    phone_number=None,
    photo=None,
    emergency=False,
    status="pending",
):
    """
    Unified workflow to create an Issue.
    AI triage -> insert -> collection grouping.
    """
    ai_result = analyze_issue(description, photo)

    issue = Issue(
        phone_number=phone_number or None,
        coordinate=coordinate or "",
        description=description,
        photo=photo or None,
        emergency=bool(emergency),
        status=status,
        assigned_department=dump_assigned_departments(ai_result.assigned_departments),
        description_pic_ai=_truncate(ai_result.description_pic_ai),
        validation=ai_result.validation,
        reason_text=_truncate(ai_result.reason),
    )
    db.add(issue)
    db.commit()
    db.refresh(issue)
    logger.info(f"Issue {issue.id} submitted (ai source: {ai_result.source})")

    collection = try_assign_collection(db, issue.id)

    return {
        "issue": issue,
        "ai": ai_result,
        "collection": collection,
    }


def verify_issue_workflow(db, issue, action, department=None):
    """
    approve -> in_progress, validated, department recorded, reporter rewarded, grouped
    deny    -> rejected
    """
    rewarded = None

    if action == "approve":
        issue.status = "in_progress"
        issue.validation = True
        if department:
            departments = parse_assigned_departments(issue.assigned_department)
            dept = department.strip().lower()
            if dept and dept not in departments:
                departments.insert(0, dept)
            issue.assigned_department = dump_assigned_departments(departments)
        rewarded = award_reward_points(db, issue.phone_number, REWARD_POINTS_PER_ISSUE)
    else:
        issue.status = "rejected"

    db.commit()
    db.refresh(issue)

    collection = None
    if action == "approve" and not issue.same_collection:
        collection = try_assign_collection(db, issue.id)
        db.refresh(issue)

    return {
        "issue": issue,
        "rewarded_user_id": rewarded.id if rewarded else None,
        "collection": collection,
    }
