from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session
from database import get_db
from app_models import User, GovtAuthority
from app_utils.constants import ROLE_ADMIN, ROLE_AUTHORITY, ROLE_CITIZEN
from app_utils.security import require_admin
from schemas import ApprovalAction, StatusUpdate, MessageResponse
import crud
import datetime
import logging

logger = logging.getLogger(__name__)

# Admin endpoints live next to the auth API
router = APIRouter(prefix="/api/auth", tags=["Admin"])


def _user_row(user, authority=None, include_image=False):
    row = {
        "id": user.id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
        "national_id": user.national_id,
        "sex": user.sex,
        "role": user.role,
        "status": user.status,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
        "department": authority.department if authority else None,
        "region": authority.region if authority else None,
    }
    if include_image:
        row["profileImage"] = user.profile_image
    return row


@router.get("/pending-govt-authorities")
def get_pending_authorities(admin=Depends(require_admin), db: Session = Depends(get_db)):
    rows = (
        db.query(User, GovtAuthority)
        .join(GovtAuthority, GovtAuthority.user_id == User.id)
        .filter(User.role == ROLE_AUTHORITY, User.status == "pending")
        .order_by(User.created_at.asc(), User.id.asc())
        .all()
    )
    return {
        "message": "Pending government authorities retrieved successfully",
        "pendingUsers": [_user_row(user, authority) for user, authority in rows],
    }


@router.post("/approve-govt-authority/{user_id}")
def approve_authority(
    user_id: int,
    body: ApprovalAction,
    admin=Depends(require_admin),
    db: Session = Depends(get_db)
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if user.role != ROLE_AUTHORITY or user.status != "pending":
        raise HTTPException(status_code=400, detail="User is not a pending government authority")

    new_status = "active" if body.action == "approve" else "rejected"
    user.status = new_status

    if body.action == "approve":
        authority = crud.get_authority_profile(db, user.id)
        if authority:
            authority.approved_by = admin["id"]
            authority.approved_at = datetime.datetime.now()

    db.commit()
    logger.info(f"Government authority {user_id} {body.action}d by admin {admin['id']}")

    return {
        "message": f"Government authority {body.action}d successfully",
        "status": new_status,
    }


@router.get("/all-users")
def get_all_users(admin=Depends(require_admin), db: Session = Depends(get_db)):
    rows = (
        db.query(User, GovtAuthority)
        .outerjoin(GovtAuthority, GovtAuthority.user_id == User.id)
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )
    return {
        "message": "Users retrieved successfully",
        "users": [_user_row(user, authority, include_image=True) for user, authority in rows],
    }


@router.get("/admin-stats")
def get_admin_stats(admin=Depends(require_admin), db: Session = Depends(get_db)):
    by_status = dict(db.query(User.status, func.count(User.id)).group_by(User.status).all())
    by_role = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())

    recent = db.query(User).order_by(User.created_at.desc(), User.id.desc()).limit(10).all()

    return {
        "totalUsers": sum(by_status.values()),
        "activeUsers": by_status.get("active", 0),
        "pendingUsers": by_status.get("pending", 0),
        "rejectedUsers": by_status.get("rejected", 0),
        "totalCitizens": by_role.get(ROLE_CITIZEN, 0),
        "totalGovtAuthorities": by_role.get(ROLE_AUTHORITY, 0),
        "totalAdmins": by_role.get(ROLE_ADMIN, 0),
        "recentRegistrations": [
            {
                "id": u.id,
                "firstName": u.first_name,
                "lastName": u.last_name,
                "email": u.email,
                "role": u.role,
                "status": u.status,
                "createdAt": u.created_at.isoformat() if u.created_at else None,
            }
            for u in recent
        ],
    }


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, admin=Depends(require_admin), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if user.id == admin["id"]:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")

    if user.role == ROLE_ADMIN:
        raise HTTPException(status_code=400, detail="Cannot delete admin accounts")

    crud.delete_user(db, user_id)
    logger.info(f"User {user_id} deleted by admin {admin['id']}")
    return {"message": "User deleted successfully"}


@router.put("/users/{user_id}/status")
def update_user_status(
    user_id: int,
    body: StatusUpdate,
    admin=Depends(require_admin),
    db: Session = Depends(get_db)
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if user.id == admin["id"]:
        raise HTTPException(status_code=400, detail="Cannot change your own status")

    user.status = body.status
    db.commit()

    return {
        "message": "User status updated successfully",
        "status": body.status,
    }
