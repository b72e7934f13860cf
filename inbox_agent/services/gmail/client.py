"""
Gmail API client construction and the credential-keyed client cache.
"""
from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

import structlog
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from inbox_agent.config import Settings

logger = structlog.get_logger(__name__)

GMAIL_SCOPES = [
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.compose",
]
TOKEN_URI = "https://oauth2.googleapis.com/token"


@dataclass(frozen=True)
class GmailCredentials:
    """OAuth client + refresh token for one mailbox."""

    client_id: str
    client_secret: str = field(repr=False)
    refresh_token: str = field(repr=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> GmailCredentials:
        """Read credentials from settings, naming the first missing variable."""
        values = {
            "GMAIL_CLIENT_ID": settings.GMAIL_CLIENT_ID,
            "GMAIL_CLIENT_SECRET": settings.GMAIL_CLIENT_SECRET,
            "GMAIL_REFRESH_TOKEN": settings.GMAIL_REFRESH_TOKEN,
        }
        for name, value in values.items():
            if not value or not value.strip():
                raise ValueError(f"{name} is required to access Gmail")
        return cls(
            client_id=values["GMAIL_CLIENT_ID"].strip(),
            client_secret=values["GMAIL_CLIENT_SECRET"].strip(),
            refresh_token=values["GMAIL_REFRESH_TOKEN"].strip(),
        )

    @property
    def cache_key(self) -> tuple[str, str]:
        """Stable identity of the authorization: client id + refresh token fingerprint."""
        fingerprint = hashlib.sha256(self.refresh_token.encode("utf-8")).hexdigest()[:16]
        return self.client_id, fingerprint


def build_gmail_service(credentials: GmailCredentials) -> Any:
    """Build a Gmail v1 resource authorized with an offline refresh token."""
    creds = Credentials(
        token=None,
        refresh_token=credentials.refresh_token,
        token_uri=TOKEN_URI,
        client_id=credentials.client_id,
        client_secret=credentials.client_secret,
        scopes=GMAIL_SCOPES,
    )
    return build("gmail", "v1", credentials=creds, cache_discovery=False)


# No eviction: one entry per distinct credential identity for the process lifetime
_service_cache: dict[tuple[str, str], Any] = {}
_service_cache_lock = threading.Lock()


def get_gmail_service(
    credentials: GmailCredentials,
    builder: Callable[[GmailCredentials], Any] = build_gmail_service,
) -> Any:
    """Get or build the Gmail resource for these credentials."""
    key = credentials.cache_key
    service = _service_cache.get(key)
    if service is None:
        with _service_cache_lock:
            service = _service_cache.get(key)
            if service is None:
                service = builder(credentials)
                _service_cache[key] = service
                logger.info("gmail.client_created", client_id=credentials.client_id)
    return service


def clear_gmail_service_cache() -> None:
    """Drop all cached clients (used by tests and credential rotation)."""
    with _service_cache_lock:
        _service_cache.clear()
