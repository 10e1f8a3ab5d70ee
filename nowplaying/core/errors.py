"""
Error taxonomy shared by the Spotify client, the credential store and the bot.

Every error carries a stable ``code`` that the presentation layer maps to a
chat-safe message, so raw upstream text never reaches end users.
"""

from __future__ import annotations


class NowPlayingError(Exception):
    """Base class for all expected failures in the relay."""

    code = "error"


class NotAuthorizedError(NowPlayingError):
    """Raised when no credential record exists for a user."""

    code = "not_authorized"


class NotPlayingError(NowPlayingError):
    """Raised when Spotify reports no active playback."""

    code = "not_playing"


class UpstreamAuthExpiredError(NowPlayingError):
    """Raised when Spotify rejects a refresh token or an access token."""

    code = "auth_expired"


class UpstreamUnavailableError(NowPlayingError):
    """Raised on network, HTTP status or payload failures from an external API."""

    code = "upstream_unavailable"


class PersistenceError(NowPlayingError):
    """Raised when the credential file cannot be written."""

    code = "persistence_failure"


__all__ = [
    "NotAuthorizedError",
    "NotPlayingError",
    "NowPlayingError",
    "PersistenceError",
    "UpstreamAuthExpiredError",
    "UpstreamUnavailableError",
]
