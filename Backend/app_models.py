from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Date, Time, Text, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    national_id = Column(String(20), unique=True, nullable=True)
    sex = Column(String(10), nullable=False, default="other")  # male, female, other
    phone_number = Column(String(20), nullable=True, index=True)
    role = Column(String(20), default="citizen")  # admin, govt_authority, citizen, or a department role
    status = Column(String(10), default="active")  # active, pending, rejected
    profile_image = Column(String(255), nullable=True)
    google_id = Column(String(100), unique=True, nullable=True)
    reward_point = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    citizen = relationship("Citizen", uselist=False, cascade="all, delete-orphan")
    authority = relationship(
        "GovtAuthority",
        uselist=False,
        cascade="all, delete-orphan",
        foreign_keys="GovtAuthority.user_id",
    )


class Citizen(Base):
    __tablename__ = "citizens"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    address = Column(Text, nullable=True)
    location_coordinates = Column(JSON, nullable=True)


class GovtAuthority(Base):
    __tablename__ = "govt_authorities"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    department = Column(String(100), nullable=False)
    region = Column(String(20), nullable=False)  # dhaka_north, dhaka_south
    admin_level = Column(String(10), default="regular")  # super, regular
    permissions = Column(JSON, nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)


class Issue(Base):
    __tablename__ = "issues"

    id = Column(Integer, primary_key=True)
    phone_number = Column(String(20), nullable=True, index=True)
    coordinate = Column(String(255), nullable=False)  # "lat,lon"
    description = Column(Text, nullable=False)
    photo = Column(Text, nullable=True)  # URL or data URL
    emergency = Column(Boolean, default=False)
    status = Column(String(20), default="pending")  # pending, in_progress, resolved, rejected
    assigned_department = Column(String(100), nullable=True)  # JSON list, e.g. '["fire","health"]'

    # AI triage results
    description_pic_ai = Column(String(255), nullable=True)
    validation = Column(Boolean, default=False)
    reason_text = Column(String(255), nullable=True)

    # Head of the collection this report was grouped into
    same_collection = Column(String(255), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True)
    event_name = Column(String(255), nullable=False)
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
