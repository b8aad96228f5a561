from app_models import User, Citizen, GovtAuthority, Issue, Event
from app_utils.constants import ROLE_ADMIN, ROLE_AUTHORITY, ROLE_CITIZEN
from app_utils.event_time import event_start, event_status
from app_utils.geo import parse_coordinate
from app_utils.security import get_password_hash
from app_utils.text_match import parse_assigned_departments
import logging
import math
import os

logger = logging.getLogger(__name__)


def _iso(value):
    return value.isoformat() if value else None


# ---------- Users ----------
def get_user_by_email(db, email):
    return db.query(User).filter(User.email == email).first()


def get_authority_profile(db, user_id):
    return db.query(GovtAuthority).filter(GovtAuthority.user_id == user_id).first()


def create_user(
    db,
    first_name,
    last_name,
    email,
    password,
    national_id,
    sex,
    phone_number,
    role=ROLE_CITIZEN,
    department=None,
    region=None,
    profile_image=None,
    google_id=None,
    hashed_password=None,
):
    """
    Create a user plus its role record.
    - citizens are active immediately and get a citizens row
    - govt authorities start as pending and get a govt_authorities row
    """
    status = "pending" if role == ROLE_AUTHORITY else "active"

    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password=hashed_password or get_password_hash(password),
        national_id=national_id,
        sex=sex,
        phone_number=phone_number,
        role=role,
        status=status,
        profile_image=profile_image,
        google_id=google_id,
    )
    db.add(user)
    db.flush()

    if role == ROLE_AUTHORITY:
        db.add(GovtAuthority(user_id=user.id, department=department, region=region))
    elif role == ROLE_CITIZEN:
        db.add(Citizen(user_id=user.id))

    db.commit()
    db.refresh(user)
    return user


def serialize_user(db, user, include_created=False):
    department = None
    region = None
    if user.role == ROLE_AUTHORITY:
        profile = get_authority_profile(db, user.id)
        if profile:
            department = profile.department
            region = profile.region

    data = {
        "id": user.id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
        "national_id": user.national_id,
        "sex": user.sex,
        "phone_number": user.phone_number,
        "status": user.status,
        "department": department,
        "region": region,
        "role": user.role,
        "profileImage": user.profile_image,
        "reward_points": user.reward_point or 0,
    }
    if include_created:
        data["createdAt"] = _iso(user.created_at)
    return data


def delete_user(db, user_id: int):
    """
    Delete a user by ID together with its citizen / authority records.
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        return None

    db.query(GovtAuthority).filter(GovtAuthority.approved_by == user_id).update(
        {GovtAuthority.approved_by: None}, synchronize_session=False
    )
    db.delete(user)
    db.commit()
    return user


def award_reward_points(db, phone_number, points):
    """
    Credit the active citizen who reported with this phone number.
    Returns the rewarded user, or None when nobody matches.
    """
    if not phone_number or points <= 0:
        return None

    user = (
        db.query(User)
        .filter(
            User.phone_number == phone_number,
            User.role == ROLE_CITIZEN,
            User.status == "active",
        )
        .order_by(User.id)
        .first()
    )
    if not user:
        return None

    user.reward_point = (user.reward_point or 0) + points
    return user


def ensure_admin(db):
    """
    Seed the fixed admin account (idempotent).
    """
    email = os.getenv("ADMIN_EMAIL", "admin@technovation.com")
    existing = get_user_by_email(db, email)
    if existing:
        return existing

    admin = User(
        first_name="System",
        last_name="Admin",
        email=email,
        password=get_password_hash(os.getenv("ADMIN_PASSWORD", "admin123")),
        national_id="ADMIN001",
        sex="male",
        phone_number="01300000000",
        role=ROLE_ADMIN,
        status="active",
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"Fixed admin user created ({email})")
    return admin


# ---------- Issues ----------
def get_issue(db, issue_id):
    return db.query(Issue).filter(Issue.id == issue_id).first()


def serialize_issue(issue):
    coords = parse_coordinate(issue.coordinate)
    head_id = None
    if issue.same_collection:
        try:
            head_id = int(issue.same_collection)
        except ValueError:
            head_id = None

    return {
        "id": issue.id,
        "phone_number": issue.phone_number,
        "coordinate": issue.coordinate,
        "latitude": coords[0] if coords else None,
        "longitude": coords[1] if coords else None,
        "description": issue.description,
        "photo": issue.photo,
        "emergency": bool(issue.emergency),
        "status": issue.status,
        "assigned_department": issue.assigned_department,
        "assigned_departments": parse_assigned_departments(issue.assigned_department),
        "description_pic_ai": issue.description_pic_ai,
        "validation": bool(issue.validation),
        "reason_text": issue.reason_text,
        "same_collection": issue.same_collection,
        "collection_head_id": head_id,
        "createdAt": _iso(issue.created_at),
    }


# ---------- Events ----------
def serialize_event(event, now=None):
    return {
        "id": event.id,
        "event_name": event.event_name,
        "date": event.date.isoformat() if event.date else None,
        "time": event.time.strftime("%H:%M:%S") if event.time else None,
        "duration_minutes": event.duration_minutes,
        "description": event.description,
        "createdAt": _iso(event.created_at),
        "status": event_status(event, now=now),
    }


def list_events(db, limit=None):
    query = db.query(Event).order_by(Event.created_at.desc(), Event.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def event_notification(event, now):
    start = event_start(event)
    time_until = math.floor((start - now).total_seconds()) if start else None
    return {
        "id": f"event-{event.id}",
        "title": event.event_name,
        "message": event.description or f"Event {event.event_name}",
        "path": f"/events/{event.id}",
        "createdAt": _iso(event.created_at) or now.isoformat(),
        "startsAt": start.isoformat() if start else None,
        "timeUntilSeconds": time_until,
        "raw": serialize_event(event, now=now),
    }
