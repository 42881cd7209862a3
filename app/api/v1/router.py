"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from app.api.v1 import audit, operations, rooms

api_router = APIRouter()

# Rooms
api_router.include_router(rooms.router, prefix="/rooms", tags=["Rooms"])

# Operations (check-in / check-out)
api_router.include_router(operations.router, prefix="/operations", tags=["Operations"])

# Audit
api_router.include_router(audit.router, prefix="/audit", tags=["Audit"])
