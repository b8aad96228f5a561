from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db
from app_models import User
from app_utils.constants import ROLE_ADMIN, ROLE_AUTHORITY, ROLE_CITIZEN
from app_utils.security import require_roles

router = APIRouter(prefix="/api/leaderboard", tags=["Leaderboard"])

LEADERBOARD_SIZE = 100


@router.get("/citizens")
def get_citizen_leaderboard(
    user=Depends(require_roles(ROLE_AUTHORITY, ROLE_ADMIN)),
    db: Session = Depends(get_db)
):
    """Top active citizens by reward points; older accounts win ties."""
    citizens = (
        db.query(User)
        .filter(User.role == ROLE_CITIZEN, User.status == "active")
        .order_by(User.reward_point.desc(), User.created_at.asc(), User.id.asc())
        .limit(LEADERBOARD_SIZE)
        .all()
    )
    return {
        "message": "Citizen leaderboard fetched successfully",
        "leaderboard": [
            {
                "id": c.id,
                "firstName": c.first_name,
                "lastName": c.last_name,
                "email": c.email,
                "phone_number": c.phone_number,
                "reward_point": c.reward_point or 0,
            }
            for c in citizens
        ],
    }
