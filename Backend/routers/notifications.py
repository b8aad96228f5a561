from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import datetime
from database import get_db
import crud

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])

NOTIFICATION_LIMIT = 50


@router.get("")
@router.get("/", include_in_schema=False)
def get_notifications(db: Session = Depends(get_db)):
    """
    Recent events as notifications, for clients showing event reminders.
    """
    now = datetime.now()
    return [crud.event_notification(e, now) for e in crud.list_events(db, limit=NOTIFICATION_LIMIT)]
