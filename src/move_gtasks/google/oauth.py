"""Google OAuth management using Authlib.

This module provides OAuth 2.0 authentication for the Google Tasks API with:
- A local redirect listener that captures the authorization code
- Automatic token refresh with the refreshed token written back to disk
- Owner-only token storage
- Google API service creation

Files (see move_gtasks.config):
    credentials.json - OAuth client credentials, supplied by the user
    token.json       - OAuth token, created by the first authorization
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import requests
from authlib.integrations.base_client import OAuthError
from authlib.integrations.requests_client import OAuth2Session
from authlib.oauth2 import OAuth2Error
from google.oauth2.credentials import Credentials as GoogleCredentials
from googleapiclient.discovery import build

from move_gtasks.config import CALLBACK_HOST, CALLBACK_PORT, AppConfig
from move_gtasks.google.callback import CallbackServer
from move_gtasks.google.exceptions import (
    CredentialsNotFoundError,
    InvalidCredentialsError,
    ScopeMismatchError,
    TokenError,
)

logger = logging.getLogger(__name__)


SCOPES = {
    "tasks": "https://www.googleapis.com/auth/tasks",
}


def clear_token(token_path: str | Path) -> None:
    """Delete a cached token so the next run re-authorizes.

    Raises:
        TokenError: If the file can't be removed, including when it doesn't exist.
    """
    try:
        Path(token_path).unlink()
    except OSError as e:
        raise TokenError(f"Unable to clear token at {token_path}: {e}") from e
    logger.info(f"Removed cached token {token_path}")


class GoogleOAuth:
    """Google OAuth management using Authlib.

    Handles the authorization-code flow, token storage and Google API
    service creation.

    Example:
        >>> auth = GoogleOAuth.from_config(load_config())
        >>> if not auth.is_authorized():
        ...     auth.authorize()
        >>> tasks_service = auth.build_service("tasks", "v1")
    """

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        scopes: list[str] | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        token_path: str | Path = "token.json",
        credentials_path: str | Path = "credentials.json",
        callback_host: str = CALLBACK_HOST,
        callback_port: int = CALLBACK_PORT,
    ):
        """Initialize Google OAuth.

        Args:
            scopes: List of scope names (e.g., ["tasks"]) or full URLs.
                   If None, defaults to ["tasks"].
            client_id: OAuth client ID (loaded from credentials file if not provided).
            client_secret: OAuth client secret (loaded from credentials file if not provided).
            token_path: Path to store/load tokens.
            credentials_path: Path to OAuth client credentials file.
            callback_host: Host the redirect listener binds to.
            callback_port: Port the redirect listener binds to.
        """
        self.token_path = Path(token_path)
        self.credentials_path = Path(credentials_path)
        self.callback_host = callback_host
        self.callback_port = callback_port

        self.required_scopes = self._resolve_scopes(scopes or ["tasks"])

        if not client_id or not client_secret:
            client_id, client_secret = self._load_client_credentials()

        self.client_id = client_id
        self.client_secret = client_secret

        self.session = OAuth2Session(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=" ".join(self.required_scopes),
            redirect_uri=f"http://{callback_host}:{callback_port}",
            token=self._load_token(),
            update_token=self._save_token,
            token_endpoint=self.TOKEN_URL,
            token_endpoint_auth_method="client_secret_post",
        )

    @classmethod
    def from_config(cls, config: AppConfig) -> GoogleOAuth:
        """Create an instance from the application configuration."""
        return cls(
            scopes=list(config.scopes),
            token_path=config.token_path,
            credentials_path=config.credentials_path,
            callback_host=config.callback_host,
            callback_port=config.callback_port,
        )

    def _resolve_scopes(self, scopes: list[str]) -> list[str]:
        """Resolve scope names to full URLs."""
        resolved = []
        for scope in scopes:
            if scope.startswith("https://"):
                resolved.append(scope)
            elif scope in SCOPES:
                resolved.append(SCOPES[scope])
            else:
                raise ValueError(
                    f"Unknown scope: {scope}. Use full URL or one of: {list(SCOPES.keys())}"
                )
        return resolved

    def _load_client_credentials(self) -> tuple[str, str]:
        """Load OAuth client credentials from file."""
        if not self.credentials_path.exists():
            raise CredentialsNotFoundError(str(self.credentials_path))

        try:
            with open(self.credentials_path) as f:
                creds = json.load(f)
        except OSError as e:
            raise InvalidCredentialsError(
                f"Unable to read client secret file at path {self.credentials_path}: {e}"
            ) from e
        except json.JSONDecodeError as e:
            raise InvalidCredentialsError(
                f"Unable to parse client secret file to config: {e}"
            ) from e

        # Handle both web and installed app credential formats
        if not isinstance(creds, dict):
            app_creds = None
        elif "installed" in creds:
            app_creds = creds["installed"]
        elif "web" in creds:
            app_creds = creds["web"]
        else:
            app_creds = None

        if not app_creds or not app_creds.get("client_id") or not app_creds.get("client_secret"):
            raise InvalidCredentialsError(
                "Invalid credentials.json format. Expected 'installed' or 'web' key "
                "with client_id and client_secret."
            )

        return app_creds["client_id"], app_creds["client_secret"]

    def _load_token(self) -> dict[str, Any] | None:
        """Load token from storage.

        Returns None when the file is missing, unreadable, or lacks a
        required scope, which sends the caller through a fresh authorization.
        """
        if not self.token_path.exists():
            logger.info("No existing token found")
            return None

        try:
            with open(self.token_path) as f:
                token_data = json.load(f)

            # Convert expiry to timestamp if in ISO format
            expiry = token_data.get("expiry")
            if expiry and isinstance(expiry, str):
                dt = datetime.fromisoformat(expiry.replace("Z", "+00:00"))
                if dt.tzinfo is None:
                    dt = dt.replace(tzinfo=timezone.utc)
                expires_at = int(dt.timestamp())
            else:
                expires_at = expiry

            # Convert Google token format to Authlib format
            authlib_token = {
                "access_token": token_data["token"],
                "refresh_token": token_data.get("refresh_token"),
                "token_type": token_data.get("type", "Bearer"),
                "expires_at": expires_at,
                "scope": " ".join(token_data.get("scopes", [])),
            }

            current_scopes = set(token_data.get("scopes", []))
            required_scopes = set(self.required_scopes)

            if not required_scopes.issubset(current_scopes):
                missing = required_scopes - current_scopes
                logger.warning(f"Token missing required scopes: {missing}")
                return None

            logger.info(f"Loaded token with scopes: {current_scopes}")
            return authlib_token

        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Failed to load token: {e}")
            return None

    def _save_token(
        self,
        token: dict[str, Any],
        refresh_token: str | None = None,
        access_token: str | None = None,
    ):
        """Save token to storage (Authlib callback)."""
        if access_token:
            token["access_token"] = access_token
        if refresh_token:
            token["refresh_token"] = refresh_token

        # A response without "scope" grants what was requested (RFC 6749 5.1)
        token_scopes = set((token.get("scope") or " ".join(self.required_scopes)).split())
        required_scopes = set(self.required_scopes)

        if not required_scopes.issubset(token_scopes):
            missing = required_scopes - token_scopes
            raise ScopeMismatchError(missing)

        expires_at = token.get("expires_at")
        expiry = (
            datetime.fromtimestamp(expires_at, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
            if expires_at
            else None
        )

        # Google authorized-user layout, readable by google-auth as well
        google_token = {
            "token": token["access_token"],
            "refresh_token": token.get("refresh_token"),
            "token_uri": self.TOKEN_URL,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "scopes": sorted(token_scopes),
            "type": token.get("token_type", "Bearer"),
            "expiry": expiry,
        }

        try:
            fd = os.open(self.token_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                json.dump(google_token, f, indent=2)
            # O_CREAT's mode doesn't apply to a file that already existed
            os.chmod(self.token_path, 0o600)
        except OSError as e:
            raise TokenError(f"Unable to cache oauth token at {self.token_path}: {e}") from e

        logger.info(f"Token saved to {self.token_path} with scopes: {token_scopes}")

    def is_authorized(self) -> bool:
        """Check if we have a token carrying the required scopes."""
        if not self.session.token:
            return False

        token_scopes = set(self.session.token.get("scope", "").split())
        return set(self.required_scopes).issubset(token_scopes)

    def get_authorization_url(self) -> str:
        """Build the URL the user visits to grant access."""
        authorization_url, _state = self.session.create_authorization_url(
            self.AUTHORIZE_URL,
            access_type="offline",
            prompt="consent",
        )
        return authorization_url

    def exchange_code(self, code: str) -> dict[str, Any]:
        """Exchange an authorization code for a token and persist it.

        Raises:
            TokenError: If the token endpoint rejects the code or can't be reached.
        """
        try:
            token = self.session.fetch_token(
                self.TOKEN_URL,
                grant_type="authorization_code",
                code=code,
            )
        except (OAuthError, OAuth2Error, requests.RequestException) as e:
            raise TokenError(f"Unable to retrieve token from web: {e}") from e

        self._save_token(token)
        return token

    def authorize(self, on_url: Callable[[str], None] | None = None) -> dict[str, Any]:
        """Run the interactive authorization flow.

        Starts the redirect listener, hands the authorization URL to
        ``on_url`` (printed by default) and blocks until the browser comes
        back with a code. There is no timeout.

        Returns:
            The new token, already saved to ``token_path``.
        """
        server = CallbackServer(self.callback_host, self.callback_port)
        server.start()
        try:
            self.session.redirect_uri = server.redirect_uri
            url = self.get_authorization_url()
            (on_url or print)(url)
            code = server.wait_for_code()
        finally:
            server.shutdown()

        return self.exchange_code(code)

    def get_credentials(self) -> GoogleCredentials:
        """Get Google Credentials object for API client libraries.

        Raises:
            TokenError: If not authorized or token refresh fails.
        """
        if not self.is_authorized():
            raise TokenError("Not authorized or missing required scopes")

        # Refresh if expired
        expires_at = self.session.token.get("expires_at") or 0
        if expires_at and expires_at < datetime.now().timestamp():
            logger.info("Token expired, refreshing...")
            try:
                self.session.refresh_token(
                    self.TOKEN_URL,
                    refresh_token=self.session.token.get("refresh_token"),
                )
            except (OAuthError, OAuth2Error, requests.RequestException) as e:
                raise TokenError(f"Failed to refresh token: {e}") from e

        expires_at = self.session.token.get("expires_at")
        expiry = (
            datetime.fromtimestamp(expires_at, tz=timezone.utc).replace(tzinfo=None)
            if expires_at
            else None
        )

        return GoogleCredentials(
            token=self.session.token["access_token"],
            refresh_token=self.session.token.get("refresh_token"),
            token_uri=self.TOKEN_URL,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=self.required_scopes,
            expiry=expiry,
        )

    def build_service(self, service_name: str = "tasks", version: str = "v1"):
        """Build a Google API service with current credentials."""
        creds = self.get_credentials()
        return build(service_name, version, credentials=creds)
