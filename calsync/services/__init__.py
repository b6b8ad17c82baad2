"""
Service registry module.

This module registers all services with the dependency injection system.
"""
from calsync.services.google_calendar_service import GoogleCalendarService


def register_services():
    """Register all services with the dependency injection system."""
    # Imported here to avoid a cycle through calsync.api
    from calsync.utils.dependencies import register_service

    register_service(GoogleCalendarService, lambda db: GoogleCalendarService(db))
