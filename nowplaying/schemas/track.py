"""
Pydantic models describing a playing track and its cross-platform links.
"""

from typing import Optional

from pydantic import BaseModel, Field


class AlbumInfo(BaseModel):
    """Album details shown alongside a track."""

    name: str
    release_date: Optional[str] = Field(
        None, description="Release date as reported by Spotify (YYYY[-MM[-DD]])."
    )
    image: Optional[str] = Field(None, description="URL of the largest album cover.")

    @property
    def release_year(self) -> Optional[str]:
        if not self.release_date:
            return None
        return self.release_date.split("-")[0]


class TrackSnapshot(BaseModel):
    """Normalized view of the user's currently playing track."""

    id: str = Field(..., description="Spotify track identifier.")
    name: str
    artists: str = Field(..., description="Artist names joined for display.")
    album: AlbumInfo


class PlatformLinks(BaseModel):
    """Links to the same track on other platforms.

    Only ``song_link`` is guaranteed; every platform URL may be absent.
    """

    spotify: Optional[str] = None
    apple_music: Optional[str] = None
    yandex: Optional[str] = None
    youtube: Optional[str] = None
    youtube_music: Optional[str] = None
    song_link: str


__all__ = ["AlbumInfo", "PlatformLinks", "TrackSnapshot"]
