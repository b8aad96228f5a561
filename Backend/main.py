from datetime import datetime, timezone
from pathlib import Path
import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from routers.auth import router as auth_router
from routers.admin import router as admin_router
from routers.submit_issue import router as submit_issue_router
from routers.issues import router as issues_router
from routers.events import router as events_router
from routers.notifications import router as notifications_router
from routers.leaderboard import router as leaderboard_router
from routers.ai_suggest import router as ai_suggest_router

from app_utils.constants import UPLOAD_DIR
from database import engine, Base, SessionLocal
import crud

# --- LOGGING SETUP ---
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="LumiNos API",
    description="Municipal issue reporting: citizen reports, authority triage and rewards",
    version="1.0.0"
)


# -------------------------------------
# Startup - Create Tables + Seed Admin
# -------------------------------------
@app.on_event("startup")
async def startup_event():
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
        db = SessionLocal()
        try:
            crud.ensure_admin(db)
        finally:
            db.close()
    except Exception as e:
        logger.error(f"Failed to initialise database: {e}")
        logger.warning("Application will continue, but DB operations may fail")


# -------------------------------------
# CORS SETTINGS
# -------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=[os.getenv("FRONTEND_URL", "http://localhost:5173")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------------------
# ERROR HANDLING
# -------------------------------------
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return JSONResponse(status_code=404, content={"message": "Route not found"})
    content = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "message": "Validation failed",
            "errors": [
                {"field": ".".join(str(part) for part in err.get("loc", ())), "msg": err.get("msg")}
                for err in exc.errors()
            ],
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# -------------------------------------
# ROUTERS
# -------------------------------------
app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(submit_issue_router)
app.include_router(issues_router)
app.include_router(events_router)
app.include_router(notifications_router)
app.include_router(leaderboard_router)
app.include_router(ai_suggest_router)

# Uploaded profile images
Path(UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")


# -------------------------------------
# Root Endpoint
# -------------------------------------
@app.get("/")
async def root():
    return {
        "message": "LumiNos API",
        "endpoints": {
            "auth": "/api/auth",
            "submit issue": "/api/submit-issue",
            "issues": "/api/issues",
            "events": "/api/events",
            "notifications": "/api/notifications",
            "leaderboard": "/api/leaderboard/citizens",
            "AI suggest": "/api/ai/suggest",
        }
    }


#--------------Health Check Endpoint----------------
@app.get("/api/health")
async def health_check():
    return {
        "status": "OK",
        "message": "Technovation TheLumiNos API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
