"""
Main FastAPI Application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from cowork.core.config import settings
from cowork.core.database import init_db, SessionLocal
from cowork.core.exceptions import register_exception_handlers
from cowork.core.rate_limit import RateLimitMiddleware
from cowork.api.v1 import (
    auth, users, branches, crm, packages, accounting, billing, payroll,
    meeting_rooms, inventory, complaints, tasks, contracts, notifications, time_tracking
)
from cowork.services.user_service import UserService

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info("Starting up...")
    init_db()

    if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
        db = SessionLocal()
        try:
            if UserService(db).ensure_admin(settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD):
                logger.info(f"Created admin user {settings.ADMIN_EMAIL}")
            db.commit()
        finally:
            db.close()

    logger.info("Database initialized")

    yield

    # Shutdown
    logger.info("Shutting down...")


# Create app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Rate limiting middleware (must be after CORS)
app.add_middleware(RateLimitMiddleware)

register_exception_handlers(app)


# Health check
@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": settings.APP_VERSION}


# Include routers
app.include_router(auth.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(branches.router, prefix="/api/v1")
app.include_router(crm.router, prefix="/api/v1")
app.include_router(packages.router, prefix="/api/v1")
app.include_router(accounting.router, prefix="/api/v1")
app.include_router(billing.router, prefix="/api/v1")
app.include_router(payroll.router, prefix="/api/v1")
app.include_router(meeting_rooms.router, prefix="/api/v1")
app.include_router(inventory.router, prefix="/api/v1")
app.include_router(complaints.router, prefix="/api/v1")
app.include_router(tasks.router, prefix="/api/v1")
app.include_router(contracts.router, prefix="/api/v1")
app.include_router(notifications.router, prefix="/api/v1")
app.include_router(time_tracking.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
