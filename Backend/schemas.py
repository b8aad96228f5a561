import datetime as dt
from pydantic import BaseModel, EmailStr, Field
from typing import List, Literal, Optional


# Issue Schemas
class IssueSubmit(BaseModel):
    phone_number: Optional[str] = None
    coordinate: Optional[str] = None
    description: Optional[str] = None
    photo: Optional[str] = None
    emergency: bool = False
    status: Literal["pending", "in_progress", "resolved", "rejected"] = "pending"


class IssueVerify(BaseModel):
    action: Literal["approve", "deny"]
    department: Optional[str] = None


class AiSuggestRequest(BaseModel):
    description: Optional[str] = None
    photo: Optional[str] = None
    departments: List[str] = []


# Event Schemas
class EventCreate(BaseModel):
    event_name: Optional[str] = None
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    duration_minutes: Optional[float] = None
    description: Optional[str] = None


# User Schemas
class UserLogin(BaseModel):
    email: Optional[str] = None
    phone_number: Optional[str] = None
    password: Optional[str] = None


class GoogleLogin(BaseModel):
    token: Optional[str] = None


class ChangePassword(BaseModel):
    currentPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=6)


class ApprovalAction(BaseModel):
    action: Literal["approve", "reject"]


class StatusUpdate(BaseModel):
    status: Literal["active", "pending", "rejected"]


class RegistrationForm(BaseModel):
    firstName: str = Field(..., min_length=2, max_length=50)
    lastName: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone_number: str = Field(..., min_length=6)
    national_id: str = Field(..., min_length=10)
    sex: Literal["male", "female", "other"]
    role: Literal["citizen", "govt_authority"] = "citizen"
    department: Optional[str] = None
    region: Optional[Literal["dhaka_north", "dhaka_south"]] = None


class MessageResponse(BaseModel):
    message: str
