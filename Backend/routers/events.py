from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from database import get_db
from app_models import Event
from app_utils.constants import ROLE_ADMIN, ROLE_AUTHORITY
from app_utils.security import require_roles
from schemas import EventCreate
import crud
import logging
import math

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/events", tags=["Events"])


@router.get("")
@router.get("/", include_in_schema=False)
def get_events(db: Session = Depends(get_db)):
    """List events newest first, each with its upcoming/ongoing/past status."""
    return {"events": [crud.serialize_event(e) for e in crud.list_events(db)]}


@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
def create_event(
    body: EventCreate,
    user=Depends(require_roles(ROLE_AUTHORITY, ROLE_ADMIN)),
    db: Session = Depends(get_db)
):
    if not body.event_name or not body.date or not body.time:
        raise HTTPException(status_code=400, detail="event_name, date and time are required")

    duration = body.duration_minutes
    if duration is None or not math.isfinite(duration) or duration <= 0:
        raise HTTPException(status_code=400, detail="duration_minutes must be a positive number")

    event = Event(
        event_name=body.event_name,
        date=body.date,
        time=body.time,
        duration_minutes=math.ceil(duration),
        description=body.description or None,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info(f"Event {event.id} created by user {user['id']}")

    return {"message": "Event created", "event": crud.serialize_event(event)}
