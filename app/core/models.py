from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Credential(BaseModel):
    """
    One user's link to Spotify.

    - user_id            : owning identity (unique key)
    - access_token       : bearer token for Web API calls
    - refresh_token      : long-lived token used to mint new access tokens
    - expires_at         : absolute, tz-aware expiry of access_token
    - remote_user_id     : Spotify user id (playlists are created under it)
    - remote_display_name: Spotify display name, if any
    """

    user_id: str
    access_token: str
    refresh_token: str
    expires_at: datetime
    remote_user_id: str
    remote_display_name: Optional[str] = None

    def is_expired(self, now: datetime, margin_seconds: int = 0) -> bool:
        return now.timestamp() >= self.expires_at.timestamp() - margin_seconds


class LocalPlaylist(BaseModel):
    id: str
    owner_id: str
    name: str
    description: str = ""
    source_query: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    remote_url: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def is_transferred(self) -> bool:
        return bool(self.remote_url)


class LocalTrack(BaseModel):
    id: str
    playlist_id: str
    position: int
    name: str
    artist: str
    album: Optional[str] = None
    reasoning: Optional[str] = None
    remote_track_id: Optional[str] = None
    preview_url: Optional[str] = None
    image_url: Optional[str] = None
    duration_ms: Optional[int] = None

    @property
    def label(self) -> str:
        return f"{self.artist} – {self.name}"


class SongSuggestion(BaseModel):
    """
    A single song as proposed by the language model.

    Names and artists are free text: possibly misspelled, non-English or
    duplicated. Only whitespace is normalised here; matching is left to
    Spotify's own search ranking.
    """

    name: str
    artist: str
    album: Optional[str] = None
    reasoning: Optional[str] = None

    @field_validator("name", "artist")
    @classmethod
    def _required_text(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("album", "reasoning")
    @classmethod
    def _optional_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


@dataclass
class TrackMatch:
    """Best Spotify search hit for one (name, artist) pair."""

    id: str
    uri: str
    name: str
    artists: List[str]
    album: Optional[str] = None
    preview_url: Optional[str] = None
    image_url: Optional[str] = None
    duration_ms: Optional[int] = None


@dataclass
class RemotePlaylist:
    id: str
    external_url: str
    image_url: Optional[str] = None


class TransferResult(BaseModel):
    """
    Summary of one transfer.

    - tracks_found : tracks resolved to a Spotify track (search hit or reuse)
    - tracks_added : tracks inside add-batches that Spotify accepted
    - total_tracks : tracks considered
    - not_found    : "artist – name" labels of tracks without a match
    """

    remote_url: str
    image_url: Optional[str] = None
    tracks_found: int
    tracks_added: int
    total_tracks: int
    not_found: List[str] = Field(default_factory=list)
