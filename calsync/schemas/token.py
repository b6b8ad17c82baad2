# calsync/schemas/token.py
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from calsync.utils.datetime_utils import ensure_utc, to_naive_utc


class TokenResponse(BaseModel):
    """
    Token payload handed over by the authorization callback or a token refresh.

    Different OAuth stages name the same fields differently (``access_token`` vs
    ``accessToken`` vs ``token``; ``expiry`` vs ``expiry_date`` in epoch ms vs
    ``expires_in`` in seconds). Everything is folded into the canonical fields
    here so nothing downstream has to guess field names.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    access_token: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("access_token", "accessToken", "token")
    )
    refresh_token: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("refresh_token", "refreshToken")
    )
    expiry: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("expiry", "expires_at", "expiresAt")
    )
    expiry_date: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("expiry_date", "expiryDate")
    )
    expires_in: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("expires_in", "expiresIn")
    )
    scope: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("scope", "scopes")
    )

    @field_validator("access_token", "refresh_token", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("scope", mode="before")
    @classmethod
    def _join_scopes(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple, set)):
            return " ".join(sorted(v))
        return v

    @model_validator(mode="after")
    def _resolve_expiry(self) -> "TokenResponse":
        if self.expiry is None:
            if self.expiry_date is not None:
                self.expiry = datetime.fromtimestamp(self.expiry_date / 1000, tz=timezone.utc)
            elif self.expires_in is not None:
                self.expiry = datetime.now(timezone.utc) + timedelta(seconds=self.expires_in)
        else:
            self.expiry = ensure_utc(self.expiry)
        return self

    @classmethod
    def from_google_credentials(cls, credentials) -> "TokenResponse":
        """Build from a ``google.oauth2.credentials.Credentials`` (expiry is naive UTC there)."""
        return cls(
            access_token=credentials.token,
            refresh_token=credentials.refresh_token,
            expiry=credentials.expiry,
            scope=list(credentials.scopes) if credentials.scopes else None,
        )

    @property
    def expiry_for_storage(self) -> Optional[datetime]:
        return to_naive_utc(self.expiry) if self.expiry else None
