"""
Identity entities returned by the accessor layer.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Certificate:
    """A public certificate for the app.

    ``data`` holds the PEM-encoded X.509 certificate exactly as the service
    returned it.
    """

    key_name: str
    data: bytes


@dataclass(frozen=True)
class AccessToken:
    """OAuth2 access token minted on behalf of the app's service account."""

    token: str
    expiry: datetime

    @classmethod
    def from_expiration_time(cls, token: str, expiration_time: int) -> "AccessToken":
        """Build from Unix seconds; values past the datetime range clamp to its bounds."""
        try:
            expiry = _EPOCH + timedelta(seconds=expiration_time)
        except OverflowError:
            bound = datetime.max if expiration_time > 0 else datetime.min
            expiry = bound.replace(tzinfo=timezone.utc)
        return cls(token=token, expiry=expiry)
