from fastapi import APIRouter

from guestdesk.api.routes import auth, dashboard, guests, health, organizations, qr

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(organizations.router, prefix="/organizations", tags=["organizations"])
api_router.include_router(guests.router, prefix="/guests", tags=["guests"])
api_router.include_router(qr.router, prefix="/qr", tags=["qr"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
