"""
API routers, mounted under /api by the application.
"""
from fastapi import APIRouter

from kny_api.api.routes import admin, announcements, donations, email, events, health, users

api_router = APIRouter(prefix="/api")
api_router.include_router(health.router, tags=["health"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(announcements.router, prefix="/announcements", tags=["announcements"])
api_router.include_router(donations.router, prefix="/donations", tags=["donations"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(email.router, prefix="/email", tags=["email"])
