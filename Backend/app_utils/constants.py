import os
import re

# ---------------- Departments ----------------
DEPARTMENTS = ["police", "health", "fire", "water", "electricity"]

# Keyword rules used when the AI service cannot be reached.
DEPARTMENT_KEYWORDS = [
    ("fire", re.compile(r"fire|smoke|burn|flame")),
    ("health", re.compile(r"injur|ambulance|blood|hospital|medical|health")),
    ("police", re.compile(r"crime|theft|police|robbery|assault|violence|security")),
    ("water", re.compile(r"water|flood|leak|sewer|drain|drainage|pipeline")),
    ("electricity", re.compile(r"electric|power|wire|transformer|outage|electrocute|short circuit")),
]

# Coarser rules for the /api/ai/suggest fallback, first match wins.
SUGGEST_KEYWORDS = [
    ("fire", re.compile(r"fire|smoke|flame")),
    ("health", re.compile(r"health|sick|injury|hospital")),
    ("water", re.compile(r"water|leak|sewage")),
    ("electricity", re.compile(r"electric|power|wire|pole")),
    ("police", re.compile(r"crime|robbery|assault|shooting|accident|police")),
]

# ---------------- Incident Categories ----------------
INCIDENT_CATEGORIES = [
    ("fire", re.compile(r"(fire|smoke|burn|flame|blaze|explosion|inferno)", re.I)),
    ("road", re.compile(r"(pothole|road|street|asphalt|lane|highway|crack|hole)", re.I)),
    ("water", re.compile(r"(flood|water[-\s]?logging|leak|drain|drainage|sewer|pipeline|pipe)", re.I)),
    ("electric", re.compile(r"(electric|power|wire|transformer|electrocute|short circuit|sparks)", re.I)),
    ("health", re.compile(r"(injur|medical|ambulance|health|hospital|disease|illness)", re.I)),
    ("police", re.compile(r"(crime|theft|violence|police|assault|robbery|security)", re.I)),
    ("sanitation", re.compile(r"(garbage|trash|waste|sanitation|clean|dirty|mosquito|vector)", re.I)),
    ("noise", re.compile(r"(noise|loud|sound|speaker|disturbance)", re.I)),
]

# ---------------- Collection Matching ----------------
MATCH_RADIUS_METERS = 100
MATCH_WINDOW_MINUTES = 30

# ---------------- Users ----------------
ROLE_ADMIN = "admin"
ROLE_AUTHORITY = "govt_authority"
ROLE_CITIZEN = "citizen"
ALL_ROLES = [ROLE_ADMIN, ROLE_AUTHORITY, ROLE_CITIZEN] + DEPARTMENTS
REGISTRABLE_ROLES = [ROLE_CITIZEN, ROLE_AUTHORITY]

# Roles allowed to triage issues
STAFF_ROLES = [ROLE_AUTHORITY, ROLE_ADMIN] + DEPARTMENTS

USER_STATUSES = ["active", "pending", "rejected"]
SEXES = ["male", "female", "other"]
REGIONS = ["dhaka_north", "dhaka_south"]

# ---------------- Issues ----------------
ISSUE_STATUSES = ["pending", "in_progress", "resolved", "rejected"]
REWARD_POINTS_PER_ISSUE = int(os.getenv("REWARD_POINTS_PER_ISSUE", "10"))

# ---------------- Uploads ----------------
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
PROFILE_IMAGE_TYPES = {"image/png", "image/jpeg", "image/jpg", "image/webp"}
PROFILE_IMAGE_MAX_BYTES = 2 * 1024 * 1024
