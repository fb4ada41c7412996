"""API v1 router aggregating all endpoints."""

from fastapi import APIRouter

from app.api.v1 import appointments, health, patients, reaccess

api_router = APIRouter()

# Health check
api_router.include_router(
    health.router,
    prefix="/health",
    tags=["health"],
)

# Appointments and attendance
api_router.include_router(
    appointments.router,
    prefix="/appointments",
    tags=["appointments"],
)

# Patient account state
api_router.include_router(
    patients.router,
    prefix="/patients",
    tags=["patients"],
)

# Re-access requests
api_router.include_router(
    reaccess.router,
    prefix="/reaccess-requests",
    tags=["reaccess"],
)
