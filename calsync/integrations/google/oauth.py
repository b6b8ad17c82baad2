# calsync/integrations/google/oauth.py
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from jose import JWTError, jwt

from calsync.core.config import settings
from calsync.core.exceptions import (
    AuthenticationException,
    ExternalServiceException,
)
from calsync.models.google_calendar import GoogleCalendarCredential

logger = logging.getLogger(__name__)

STATE_PURPOSE = "google_calendar_connect"


class GoogleOAuthClient:
    """Client for the Google Calendar authorization (consent) flow."""

    @staticmethod
    def get_client_config() -> Dict[str, Dict[str, str]]:
        """OAuth client config from GOOGLE_CLIENT_SECRETS_JSON, else from id/secret."""
        if settings.GOOGLE_CLIENT_SECRETS_JSON:
            try:
                return json.loads(settings.GOOGLE_CLIENT_SECRETS_JSON)
            except json.JSONDecodeError as e:
                logger.error(f"Invalid JSON in GOOGLE_CLIENT_SECRETS_JSON: {e}")
                raise ExternalServiceException(
                    "Invalid Google OAuth client configuration"
                ) from e

        if not settings.GOOGLE_CLIENT_ID or not settings.GOOGLE_CLIENT_SECRET:
            logger.error("No Google OAuth client credentials configured")
            raise ExternalServiceException("Google OAuth client is not configured")

        return {
            "web": {
                "client_id": settings.GOOGLE_CLIENT_ID,
                "client_secret": settings.GOOGLE_CLIENT_SECRET,
                "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                "token_uri": settings.GOOGLE_TOKEN_URI,
                "redirect_uris": [settings.google_callback_url],
            }
        }

    @staticmethod
    def get_client_id_and_secret() -> Tuple[str, str]:
        config = GoogleOAuthClient.get_client_config()
        web_config = config.get("web") or config.get("installed") or {}
        client_id = web_config.get("client_id")
        client_secret = web_config.get("client_secret")
        if not client_id or not client_secret:
            logger.error("Missing client_id or client_secret in Google OAuth config")
            raise ExternalServiceException("Google OAuth client is not configured")
        return client_id, client_secret

    @staticmethod
    def create_oauth_flow(redirect_uri: Optional[str] = None) -> Flow:
        return Flow.from_client_config(
            GoogleOAuthClient.get_client_config(),
            scopes=settings.GOOGLE_CALENDAR_SCOPES,
            redirect_uri=redirect_uri or settings.google_callback_url,
            # The code is exchanged by a fresh Flow, so there is no verifier to carry over
            autogenerate_code_verifier=False,
        )

    @staticmethod
    def authorization_url(state: str) -> str:
        flow = GoogleOAuthClient.create_oauth_flow()
        url, _ = flow.authorization_url(
            access_type="offline",
            prompt="consent",
            state=state,
        )
        return url

    @staticmethod
    def exchange_code(code: str) -> Credentials:
        """Exchange an authorization code for tokens (blocking network call)."""
        flow = GoogleOAuthClient.create_oauth_flow()
        flow.fetch_token(code=code)
        return flow.credentials

    @staticmethod
    def build_credentials(credential: GoogleCalendarCredential) -> Credentials:
        """google-auth credentials for a stored token pair; refreshes itself on expiry."""
        client_id, client_secret = GoogleOAuthClient.get_client_id_and_secret()
        return Credentials(
            token=credential.access_token,
            refresh_token=credential.refresh_token,
            token_uri=settings.GOOGLE_TOKEN_URI,
            client_id=client_id,
            client_secret=client_secret,
            scopes=settings.GOOGLE_CALENDAR_SCOPES,
            expiry=credential.token_expiry,
        )

    # The state parameter is a short-lived signed token naming the user who
    # started the flow, so the public callback can attribute the tokens.

    @staticmethod
    def create_state(user_id: int) -> str:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.OAUTH_STATE_EXPIRE_MINUTES
        )
        payload = {"sub": str(user_id), "purpose": STATE_PURPOSE, "exp": expire}
        return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    @staticmethod
    def verify_state(state: str) -> int:
        try:
            payload = jwt.decode(
                state, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
            )
        except JWTError as e:
            raise AuthenticationException("Invalid or expired authorization state") from e

        if payload.get("purpose") != STATE_PURPOSE or "sub" not in payload:
            raise AuthenticationException("Invalid authorization state")
        return int(payload["sub"])
