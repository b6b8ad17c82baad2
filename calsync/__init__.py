"""
Calsync: keeps application calendar events in step with Google Calendar.
"""

__version__ = "0.1.0"
