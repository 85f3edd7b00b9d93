"""Google OAuth for the Tasks API."""

from move_gtasks.google.callback import CallbackServer
from move_gtasks.google.exceptions import (
    CredentialsNotFoundError,
    GoogleAuthError,
    InvalidCredentialsError,
    ScopeMismatchError,
    TokenError,
)
from move_gtasks.google.oauth import GoogleOAuth, clear_token

__all__ = [
    "GoogleOAuth",
    "CallbackServer",
    "clear_token",
    "GoogleAuthError",
    "CredentialsNotFoundError",
    "InvalidCredentialsError",
    "TokenError",
    "ScopeMismatchError",
]
