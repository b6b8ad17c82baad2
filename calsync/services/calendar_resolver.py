# calsync/services/calendar_resolver.py
import logging
from typing import Optional

from calsync.core.config import settings
from calsync.core.exceptions import BusinessException, ExternalServiceException
from calsync.integrations.google.calendar import GoogleCalendarClient
from calsync.models.google_calendar import GoogleCalendarCredential
from calsync.services.credential_service import CredentialService
from calsync.utils.timeout import run_blocking

logger = logging.getLogger(__name__)


class RemoteCalendarResolver:
    """
    Finds or provisions the one Google calendar that pushed events go to.

    Lookup order is the cached id, then a calendar whose name matches
    DEDICATED_CALENDAR_NAME, then a newly created one. Whatever is found is
    cached on the credential.
    """

    def __init__(self, credentials: CredentialService, timeout: Optional[float] = None):
        self.credentials = credentials
        self.timeout = timeout or settings.GOOGLE_API_TIMEOUT

    async def resolve(
        self, client: GoogleCalendarClient, credential: GoogleCalendarCredential
    ) -> str:
        """
        Return the dedicated calendar id.

        Raises:
            BusinessException: the calendar could not be created
        """
        calendar_id = await self._verify_cached(client, credential)
        if calendar_id:
            return calendar_id

        calendar_id = await self._find_by_name(client, credential)
        if calendar_id is None:
            calendar_id = await self._create(client, credential)

        self.credentials.cache_dedicated_calendar(credential, calendar_id)
        return calendar_id

    async def _verify_cached(
        self, client: GoogleCalendarClient, credential: GoogleCalendarCredential
    ) -> Optional[str]:
        cached = credential.dedicated_calendar_id
        if not cached:
            return None
        try:
            await run_blocking(client.get_calendar, cached, timeout=self.timeout)
        except BusinessException as e:
            logger.warning(
                f"Cached calendar {cached} for user {credential.user_id} did not resolve: {e.message}"
            )
            return None
        return cached

    async def _find_by_name(
        self, client: GoogleCalendarClient, credential: GoogleCalendarCredential
    ) -> Optional[str]:
        try:
            calendars = await run_blocking(client.list_calendars, timeout=self.timeout)
        except BusinessException as e:
            logger.warning(f"Listing calendars for user {credential.user_id} failed: {e.message}")
            return None

        for calendar in calendars:
            if calendar.get("summary") == settings.DEDICATED_CALENDAR_NAME and calendar.get("id"):
                logger.info(
                    f"Found existing {settings.DEDICATED_CALENDAR_NAME} calendar for user {credential.user_id}"
                )
                return calendar["id"]
        return None

    async def _create(
        self, client: GoogleCalendarClient, credential: GoogleCalendarCredential
    ) -> str:
        created = await run_blocking(
            client.create_calendar,
            settings.DEDICATED_CALENDAR_NAME,
            settings.DEDICATED_CALENDAR_DESCRIPTION,
            settings.DEFAULT_TIMEZONE,
            timeout=self.timeout,
        )
        calendar_id = created.get("id")
        if not calendar_id:
            raise ExternalServiceException("Google returned a calendar without an id")
        logger.info(f"Provisioned dedicated calendar {calendar_id} for user {credential.user_id}")
        return calendar_id
