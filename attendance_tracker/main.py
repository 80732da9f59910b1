import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from attendance_tracker.api.v1.attendance import router
from attendance_tracker.api.v1.auth import auth_router
from attendance_tracker.api.v1.students import students_router
from attendance_tracker.config import get_settings
from attendance_tracker.database import database
from attendance_tracker.services.identity import identity_provider
from attendance_tracker.services.session_controller import SessionController

VERSION = "1.0.0"


def configure_logging():
    settings = get_settings()
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))

    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


configure_logging()
logger = logging.getLogger(__name__)


async def seed_admin():
    settings = get_settings()
    if not (settings.admin_email and settings.admin_password):
        return
    async with database.get_session() as db:
        await identity_provider.ensure_admin(db, settings.admin_email, settings.admin_password)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")
    try:
        await database.connect()
        await database.create_tables()
        await seed_admin()
    except Exception as e:
        logger.error(f"Error during startup: {e}", exc_info=True)

    with SessionController(identity_provider) as controller:
        app.state.session_controller = controller
        logger.info("Application startup complete")
        yield

    logger.info("Shutting down application...")
    try:
        await database.disconnect()
    except Exception as e:
        logger.error(f"Error during shutdown: {e}", exc_info=True)
    logger.info("Application shutdown complete")


app = FastAPI(
    title="Student Attendance Tracker API",
    description="Students, per-subject daily attendance and attendance analytics",
    version=VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(students_router)
app.include_router(router)


@app.get("/")
async def root():
    return {
        "message": "Welcome to Student Attendance Tracker API",
        "version": VERSION,
        "endpoints": {
            "auth": "/auth",
            "students": "/students",
            "attendance": "/attendance",
            "student_lookup": "/attendance/student/{roll_no}",
            "health": "/health"
        }
    }


@app.get("/health")
async def health_check(request: Request):
    db_status = await database.check_connection()
    controller = getattr(request.app.state, "session_controller", None)
    return {
        "status": "healthy" if db_status else "degraded",
        "database": "connected" if db_status else "disconnected",
        "active_sessions": controller.active_session_count if controller else 0
    }


# Error handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "detail": str(exc) if str(exc) else "Unknown error"
        }
    )


if __name__ == "__main__":
    uvicorn.run("attendance_tracker.main:app", host="0.0.0.0", port=8000, reload=True)
