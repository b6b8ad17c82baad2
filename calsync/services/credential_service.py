# calsync/services/credential_service.py
import logging
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from calsync.core.config import settings
from calsync.core.exceptions import ValidationException
from calsync.integrations.google.calendar import GoogleCalendarClient
from calsync.integrations.google.oauth import GoogleOAuthClient
from calsync.models.google_calendar import GoogleCalendarCredential
from calsync.repositories.google_calendar_repository import (
    GoogleCalendarCredentialRepository,
)
from calsync.schemas.token import TokenResponse
from calsync.utils.datetime_utils import to_naive_utc

logger = logging.getLogger(__name__)


class CredentialService:
    """Stores each user's Google token pair and turns it into API clients."""

    def __init__(self, db: Session):
        self.db = db
        self.repository = GoogleCalendarCredentialRepository(db)

    def get(self, user_id: int) -> Optional[GoogleCalendarCredential]:
        """The user's credential row, or None when Google Calendar is not connected."""
        return self.repository.get_by_user_id(user_id)

    def save(
        self, user_id: int, token_response: Union[TokenResponse, Dict[str, Any]]
    ) -> GoogleCalendarCredential:
        """
        Create or update the user's credential from a token response.

        Raises:
            ValidationException: no access token in the response; nothing is written
        """
        if not isinstance(token_response, TokenResponse):
            try:
                token_response = TokenResponse.model_validate(token_response)
            except ValidationError as e:
                raise ValidationException("Malformed token response", details={"errors": str(e)})

        if not token_response.access_token:
            logger.error(f"No access token provided for user {user_id}")
            raise ValidationException("Token response has no access token")

        credential = self.repository.get_by_user_id(user_id)
        if credential is None:
            credential = GoogleCalendarCredential(user_id=user_id, sync_enabled=True)
            logger.info(f"Connecting Google Calendar for user {user_id}")

        credential.access_token = token_response.access_token
        # Google only issues a refresh token on first consent; keep the old one
        if token_response.refresh_token:
            credential.refresh_token = token_response.refresh_token
        if token_response.expiry:
            credential.token_expiry = token_response.expiry_for_storage
        if token_response.scope:
            credential.scopes = token_response.scope

        return self.repository.save(credential)

    def build_client(
        self, credential: GoogleCalendarCredential, timeout: Optional[float] = None
    ) -> GoogleCalendarClient:
        """A fresh client bound to the stored tokens. Never cached between operations."""
        google_credentials = GoogleOAuthClient.build_credentials(credential)
        return GoogleCalendarClient(
            google_credentials, timeout=timeout or settings.GOOGLE_API_TIMEOUT
        )

    def store_refreshed(
        self, credential: GoogleCalendarCredential, client: GoogleCalendarClient
    ) -> bool:
        """Persist a token the client refreshed on its own during an operation."""
        google_credentials = getattr(client, "credentials", None)
        token = getattr(google_credentials, "token", None)
        if not token or token == credential.access_token:
            return False

        credential.access_token = token
        if google_credentials.expiry:
            credential.token_expiry = to_naive_utc(google_credentials.expiry)
        self.repository.save(credential)
        logger.info(f"Stored refreshed Google access token for user {credential.user_id}")
        return True

    def set_sync_enabled(self, user_id: int, enabled: bool) -> bool:
        """False when the user has no Google Calendar connection."""
        credential = self.repository.get_by_user_id(user_id)
        if not credential:
            logger.info(f"No Google Calendar credential for user {user_id}")
            return False

        credential.sync_enabled = enabled
        self.repository.save(credential)
        logger.info(
            f"Google Calendar sync {'enabled' if enabled else 'disabled'} for user {user_id}"
        )
        return True

    def delete(self, user_id: int) -> int:
        """Stage removal of the user's credential. Caller commits."""
        return self.repository.delete_for_user(user_id)

    def cache_dedicated_calendar(
        self, credential: GoogleCalendarCredential, calendar_id: str
    ) -> GoogleCalendarCredential:
        if credential.dedicated_calendar_id == calendar_id:
            return credential
        return self.repository.update_dedicated_calendar(credential, calendar_id)
