"""Credential connectivity checks.

Each check makes one HTTP request with a bounded timeout. A network
failure never fails a credential; it is reported as UNVERIFIED so the
wizard can accept the value with a warning.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit

import httpx
import structlog

logger = structlog.get_logger(__name__)

GITHUB_API_URL = "https://api.github.com"
SUPABASE_HOSTS = (".supabase.co", ".supabase.in")


class ValidationStatus(Enum):
    VALID = "valid"
    INVALID = "invalid"
    UNVERIFIED = "unverified"


@dataclass
class ValidationResult:
    """Outcome of a credential check."""

    status: ValidationStatus
    message: str = ""
    account: str | None = None

    @property
    def valid(self) -> bool:
        return self.status is ValidationStatus.VALID


class CredentialValidator:
    """Validate service credentials against the live APIs."""

    def __init__(self, timeout: float = 10.0, transport: httpx.BaseTransport | None = None):
        """Initialize validator.

        Args:
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, transport=self.transport)

    def validate_github_token(self, token: str) -> ValidationResult:
        """Check a GitHub personal access token via ``GET /user``."""
        try:
            with self._client() as client:
                response = client.get(
                    f"{GITHUB_API_URL}/user",
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Accept": "application/vnd.github+json",
                    },
                )
        except httpx.RequestError as e:
            logger.info("github_validation_unreachable", error=type(e).__name__)
            return ValidationResult(
                ValidationStatus.UNVERIFIED,
                "Could not reach GitHub to validate the token",
            )

        if response.status_code == 200:
            try:
                data = response.json()
            except ValueError:
                data = None
            login = data.get("login") if isinstance(data, dict) else None
            if login:
                return ValidationResult(ValidationStatus.VALID, f"Authenticated as {login}", account=login)
            return ValidationResult(ValidationStatus.VALID, "Token accepted by GitHub")
        if response.status_code == 401:
            return ValidationResult(ValidationStatus.INVALID, "Invalid or expired token")
        return ValidationResult(
            ValidationStatus.INVALID,
            f"Unexpected status code: {response.status_code}",
        )

    def validate_supabase(self, url: str, anon_key: str) -> ValidationResult:
        """Check a Supabase project URL and anon key.

        The URL must be on a Supabase host. A ``GET {url}/rest/v1/`` with
        the key as ``apikey`` must answer 200 or 404; 401 means the key was
        rejected.

        Args:
            url: Project URL
            anon_key: Anon/public API key

        Returns:
            ValidationResult
        """
        hostname = urlsplit(url).hostname or ""
        if not hostname.endswith(SUPABASE_HOSTS):
            return ValidationResult(
                ValidationStatus.INVALID,
                "Invalid Supabase URL format (expected https://<ref>.supabase.co)",
            )

        try:
            with self._client() as client:
                response = client.get(
                    f"{url.rstrip('/')}/rest/v1/",
                    headers={"apikey": anon_key, "Authorization": f"Bearer {anon_key}"},
                )
        except httpx.RequestError as e:
            logger.info("supabase_validation_unreachable", error=type(e).__name__)
            return ValidationResult(
                ValidationStatus.UNVERIFIED,
                "Could not validate credentials (network issue)",
            )

        if response.status_code in (200, 404):
            return ValidationResult(ValidationStatus.VALID, "Credentials validated")
        if response.status_code == 401:
            return ValidationResult(ValidationStatus.INVALID, "Invalid API key")
        return ValidationResult(
            ValidationStatus.INVALID,
            f"Unexpected status code: {response.status_code}",
        )
