"""
KNY Membership API - Main entry point.

REST backend for the Kaya Natin Youth - Moncada membership site:

- Users: registration, login, profiles, admin approval and roles
- Events: listing, RSVP registration with capacity, interest tracking
- Announcements: admin notices with priority and expiry
- Donations: admin ledger with stats and CSV import/export
- Admin: dashboard statistics
- Email: admin-only outbound mail

All routes are mounted under /api. Uploaded images are served from /uploads.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from kny_api.api import api_router
from kny_api.core.config import settings
from kny_api.core.exceptions import install_error_handlers
from kny_api.db.base import Database
from kny_api.services.accounts import ensure_admin_user

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_admin(database: Database) -> None:
    """Create the configured admin account if all admin settings are present."""
    if not (settings.ADMIN_USERNAME and settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD):
        return
    async with database.session() as session:
        await ensure_admin_user(
            session,
            username=settings.ADMIN_USERNAME,
            email=settings.ADMIN_EMAIL,
            password=settings.ADMIN_PASSWORD,
            name=settings.ADMIN_NAME,
        )
        await session.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    # Startup: connect and create tables
    database = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    database.connect()
    await database.create_all()
    await seed_admin(database)
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    app.state.database = database
    logger.info("%s %s started (%s)", settings.APP_NAME, settings.VERSION, settings.APP_ENV)
    yield
    # Shutdown: close the pool
    await database.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Membership, events, announcements and donations for KNY Moncada.",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)

app.include_router(api_router)

app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/", tags=["health"])
async def root():
    """Root banner."""
    return {"message": f"{settings.APP_NAME} is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("kny_api.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
