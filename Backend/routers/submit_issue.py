from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from database import get_db
from schemas import IssueSubmit
from services.issue_service import submit_issue_workflow
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/submit-issue", tags=["Issues"])


# ==================================================
# CITIZEN ISSUE SUBMISSION
# ==================================================
@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
def submit_issue(body: IssueSubmit, db: Session = Depends(get_db)):
    """
    Submit an issue report.
    - Runs AI triage (photo vs description, departments).
    - Stores the issue with the triage results.
    - Tries to group it with a matching recent report.
    """
    if not body.description:
        raise HTTPException(status_code=400, detail="description is required")

    result = submit_issue_workflow(
        db,
        description=body.description,
        coordinate=body.coordinate,
        phone_number=body.phone_number,
        photo=body.photo,
        emergency=body.emergency,
        status=body.status,
    )
    issue = result["issue"]
    collection = result["collection"]

    return {
        "message": "Issue submitted successfully",
        "issueId": issue.id,
        "ai": result["ai"].to_response(),
        "collection": {
            "matched": collection.matched,
            "head_id": collection.head_id,
        } if collection else None,
    }
