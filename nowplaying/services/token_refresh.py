"""
Time-driven refresh of every stored Spotify access token.

Access tokens are never refreshed reactively; a token that expires between
two batches keeps failing until the next run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from nowplaying.clients.spotify import SpotifyClient
from nowplaying.core.errors import UpstreamAuthExpiredError
from nowplaying.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RefreshReport:
    """Outcome of one refresh batch, by user id."""

    refreshed: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class TokenRefresher:
    """Exchange each stored refresh token for a fresh access token."""

    def __init__(self, store: CredentialStore, spotify_client: SpotifyClient) -> None:
        self._store = store
        self._spotify = spotify_client

    async def refresh_all(self) -> RefreshReport:
        """Refresh every record; one user's failure never aborts the batch."""
        report = RefreshReport()
        for user_id, record in self._store.items():
            try:
                access_token, rotated = await self._spotify.refresh_access_token(
                    record.refresh_token
                )
                written = await self._store.set(
                    user_id,
                    record.with_access_token(access_token, rotated),
                    expected=record,
                )
            except UpstreamAuthExpiredError:
                logger.warning(
                    "Refresh token rejected; removing credentials",
                    extra={"user_id": user_id},
                )
                try:
                    removed = await self._store.delete(user_id, expected=record)
                except Exception:  # pylint: disable=broad-except
                    logger.exception(
                        "Error removing credentials", extra={"user_id": user_id}
                    )
                    report.failed.append(user_id)
                else:
                    if removed:
                        report.removed.append(user_id)
            except Exception:  # pylint: disable=broad-except
                logger.exception(
                    "Error refreshing token for user", extra={"user_id": user_id}
                )
                report.failed.append(user_id)
            else:
                # Not written: the user re-authorized while the refresh was in flight.
                if written:
                    report.refreshed.append(user_id)

        logger.info(
            "Token refresh finished: %d refreshed, %d removed, %d failed",
            len(report.refreshed),
            len(report.removed),
            len(report.failed),
        )
        return report


__all__ = ["RefreshReport", "TokenRefresher"]
