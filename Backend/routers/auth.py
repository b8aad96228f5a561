from fastapi import APIRouter, Depends, HTTPException, status, Form, File, UploadFile
from sqlalchemy import or_
from sqlalchemy.orm import Session
from pydantic import ValidationError
from pathlib import Path
from typing import Optional
import logging
import os
import time
import uuid

import requests

from database import get_db
from app_models import User
from app_utils.constants import (
    ROLE_AUTHORITY,
    ROLE_CITIZEN,
    UPLOAD_DIR,
    PROFILE_IMAGE_TYPES,
    PROFILE_IMAGE_MAX_BYTES,
)
from app_utils.security import (
    create_access_token,
    get_current_user,
    get_password_hash,
    verify_password,
)
from schemas import RegistrationForm, UserLogin, GoogleLogin, ChangePassword, MessageResponse
import crud

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

PROFILE_DIR = Path(UPLOAD_DIR) / "profile"
PROFILE_DIR.mkdir(parents=True, exist_ok=True)

GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"


def validation_failed(errors):
    return HTTPException(
        status_code=400,
        detail={
            "message": "Validation failed",
            "errors": [
                {"field": ".".join(str(part) for part in err.get("loc", ())), "msg": err.get("msg")}
                for err in errors
            ],
        },
    )


async def save_profile_image(file: UploadFile) -> str:
    if not file.content_type or file.content_type.lower() not in PROFILE_IMAGE_TYPES:
        raise HTTPException(status_code=400, detail="Only PNG/JPG/WEBP allowed")

    data = await file.read()
    if len(data) > PROFILE_IMAGE_MAX_BYTES:
        raise HTTPException(status_code=400, detail="Profile image must be 2MB or smaller")

    ext = Path(file.filename or ".jpg").suffix.lower() or ".jpg"
    safe_name = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:10]}{ext}"
    with open(PROFILE_DIR / safe_name, "wb") as f:
        f.write(data)
    return f"/uploads/profile/{safe_name}"


# --------------------------------------------------
# REGISTER
# --------------------------------------------------
@router.post("/register", status_code=201)
async def register(
    firstName: str = Form(""),
    lastName: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    confirmPassword: Optional[str] = Form(None),
    national_id: str = Form(""),
    sex: str = Form(""),
    phone_number: str = Form(""),
    role: str = Form("citizen"),
    department: Optional[str] = Form(None),
    region: Optional[str] = Form(None),
    profileImage: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db)
):
    """
    Register a citizen or a government authority.
    - Citizens are active immediately and receive a token.
    - Government authorities wait for admin approval (no token).
    """
    try:
        form = RegistrationForm(
            firstName=firstName.strip(),
            lastName=lastName.strip(),
            email=email.strip().lower(),
            password=password,
            phone_number=phone_number.strip(),
            national_id=national_id.strip(),
            sex=sex,
            role=(role or ROLE_CITIZEN).lower(),
            department=department.strip() if department else None,
            region=region or None,
        )
    except ValidationError as e:
        logger.info(f"Registration validation errors: {e.errors()}")
        raise validation_failed(e.errors())

    # department and region only required for government authorities
    if form.role == ROLE_AUTHORITY:
        if not form.department:
            raise HTTPException(status_code=400, detail="Department is required for government authorities")
        if not form.region:
            raise HTTPException(status_code=400, detail="Region is required for government authorities")

    if crud.get_user_by_email(db, form.email):
        raise HTTPException(status_code=400, detail="User with this email already exists")

    if db.query(User).filter(User.national_id == form.national_id).first():
        raise HTTPException(status_code=400, detail="National ID must be unique")

    profile_path = None
    if profileImage is not None and profileImage.filename:
        profile_path = await save_profile_image(profileImage)

    user = crud.create_user(
        db,
        first_name=form.firstName,
        last_name=form.lastName,
        email=form.email,
        password=form.password,
        national_id=form.national_id,
        sex=form.sex,
        phone_number=form.phone_number,
        role=form.role,
        department=form.department if form.role == ROLE_AUTHORITY else None,
        region=form.region if form.role == ROLE_AUTHORITY else None,
        profile_image=profile_path,
    )
    logger.info(f"Registered user {user.id} as {user.role}")

    is_authority = user.role == ROLE_AUTHORITY
    return {
        "message": "Registration submitted for approval" if is_authority else "User registered successfully",
        "token": None if is_authority else create_access_token(user),
        "user": crud.serialize_user(db, user),
    }


# --------------------------------------------------
# LOGIN
# --------------------------------------------------
@router.post("/login")
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    if not credentials.password or (not credentials.email and not credentials.phone_number):
        raise HTTPException(status_code=400, detail="Email or phone number and password required")

    user = db.query(User).filter(
        or_(
            User.email == (credentials.email or "").strip().lower(),
            User.phone_number == (credentials.phone_number or ""),
        )
    ).order_by(User.id).first()

    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if user.status == "pending":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Your account is pending admin approval")
    if user.status == "rejected":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Your account has been rejected")

    if not verify_password(credentials.password, user.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    return {
        "message": "Login successful",
        "token": create_access_token(user),
        "user": crud.serialize_user(db, user),
    }


# --------------------------------------------------
# GOOGLE LOGIN
# --------------------------------------------------
def verify_google_token(token: str) -> dict:
    """
    Validate a Google ID token through Google's tokeninfo endpoint.
    Returns the token claims; raises HTTPException when the token is rejected.
    """
    response = requests.get(GOOGLE_TOKENINFO_URL, params={"id_token": token}, timeout=5)
    if response.status_code != 200:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid Google token")

    claims = response.json()
    client_id = os.getenv("GOOGLE_CLIENT_ID")
    if client_id and claims.get("aud") != client_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid Google token")
    if not claims.get("email") or not claims.get("sub"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid Google token")
    return claims


@router.post("/google")
def google_login(body: GoogleLogin, db: Session = Depends(get_db)):
    if not body.token:
        raise HTTPException(status_code=400, detail="Google token is required")

    try:
        claims = verify_google_token(body.token)
    except requests.RequestException as e:
        logger.error(f"Google login error: {e}")
        raise HTTPException(status_code=500, detail="Google login failed")

    email = claims["email"].lower()
    google_id = claims["sub"]

    user = db.query(User).filter(or_(User.email == email, User.google_id == google_id)).first()
    if user:
        if not user.google_id:
            user.google_id = google_id
            db.commit()
    else:
        user = crud.create_user(
            db,
            first_name=claims.get("given_name") or email.split("@")[0],
            last_name=claims.get("family_name") or "",
            email=email,
            password=None,
            national_id=None,
            sex="other",
            phone_number=None,
            role=ROLE_CITIZEN,
            google_id=google_id,
            hashed_password="google_oauth",
        )

    return {
        "message": "Google login successful",
        "token": create_access_token(user),
        "user": crud.serialize_user(db, user),
    }


# --------------------------------------------------
# PROFILE
# --------------------------------------------------
@router.get("/me")
def me(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"user": crud.serialize_user(db, user, include_created=True)}


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePassword,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not verify_password(body.currentPassword, user.password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    user.password = get_password_hash(body.newPassword)
    db.commit()
    return {"message": "Password changed successfully"}


@router.post("/logout", response_model=MessageResponse)
def logout():
    return {"message": "Logged out successfully"}
