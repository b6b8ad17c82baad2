# calsync/api/api.py
from fastapi import APIRouter

from calsync.api.routes import google_calendar

api_router = APIRouter()
api_router.include_router(
    google_calendar.router, prefix="/calendar/google", tags=["google_calendar"]
)
