from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
from database import get_db
from app_models import Issue
from app_utils.constants import DEPARTMENTS, STAFF_ROLES
from app_utils.security import require_roles
from app_utils.text_match import parse_assigned_departments
from schemas import IssueVerify
from services.issue_service import verify_issue_workflow
import crud
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/issues", tags=["Issues"])

require_staff = require_roles(*STAFF_ROLES)


# ==================================================
# GET ALL ISSUES
# ==================================================
@router.get("")
@router.get("/", include_in_schema=False)
def get_issues(
    status: Optional[str] = Query(None, description="Filter by status"),
    department: Optional[str] = Query(None, description="Filter by assigned department"),
    heads_only: bool = Query(False, description="Only return collection heads"),
    db: Session = Depends(get_db)
):
    """
    Get all issues with parsed coordinates.
    """
    query = db.query(Issue)
    if status:
        query = query.filter(Issue.status == status)
    if heads_only:
        query = query.filter(Issue.same_collection.is_(None))

    issues = query.order_by(Issue.created_at.desc(), Issue.id.desc()).all()

    if department:
        dept = department.strip().lower()
        issues = [
            i for i in issues
            if dept in [d.lower() for d in parse_assigned_departments(i.assigned_department)]
        ]

    return [crud.serialize_issue(issue) for issue in issues]


@router.get("/meta/departments")
def get_departments():
    return {"departments": DEPARTMENTS}


# ==================================================
# GET ISSUE BY ID
# ==================================================
@router.get("/{issue_id}")
def get_issue(issue_id: int, db: Session = Depends(get_db)):
    issue = crud.get_issue(db, issue_id)
    if not issue:
        raise HTTPException(status_code=404, detail="Issue not found")

    data = crud.serialize_issue(issue)
    data["collection_members"] = [
        member.id
        for member in db.query(Issue)
        .filter(Issue.same_collection == str(issue.id))
        .order_by(Issue.created_at.asc(), Issue.id.asc())
        .all()
    ]
    return data


# ==================================================
# VERIFY ISSUE (APPROVE / DENY)
# ==================================================
@router.post("/{issue_id}/verify")
def verify_issue(
    issue_id: int,
    body: IssueVerify,
    user=Depends(require_staff),
    db: Session = Depends(get_db)
):
    issue = crud.get_issue(db, issue_id)
    if not issue:
        raise HTTPException(status_code=404, detail="Issue not found")

    if issue.status in ("resolved", "rejected"):
        raise HTTPException(status_code=400, detail=f"Issue is already {issue.status}")

    if body.department and body.department.strip().lower() not in DEPARTMENTS:
        raise HTTPException(status_code=400, detail=f"Invalid department: {body.department}")

    result = verify_issue_workflow(db, issue, body.action, department=body.department)
    logger.info(f"Issue {issue_id} {body.action}d by user {user['id']}")

    return {
        "message": "Issue approved" if body.action == "approve" else "Issue denied",
        "issue": crud.serialize_issue(result["issue"]),
        "rewarded_user_id": result["rewarded_user_id"],
    }


# ==================================================
# RESOLVE ISSUE
# ==================================================
@router.post("/{issue_id}/resolve")
def resolve_issue(issue_id: int, user=Depends(require_staff), db: Session = Depends(get_db)):
    issue = crud.get_issue(db, issue_id)
    if not issue:
        raise HTTPException(status_code=404, detail="Issue not found")

    if issue.status == "rejected":
        raise HTTPException(status_code=400, detail="Rejected issues cannot be resolved")

    issue.status = "resolved"
    db.commit()
    db.refresh(issue)
    logger.info(f"Issue {issue_id} resolved by user {user['id']}")

    return {
        "message": f"Issue {issue_id} marked as resolved",
        "issue": crud.serialize_issue(issue),
    }
