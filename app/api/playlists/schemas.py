from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.core import LocalPlaylist, LocalTrack


class CreatePlaylistRequest(BaseModel):
    """
    A playlist freshly produced by the language model.

    `songs` is kept loosely typed on purpose: entries are validated one by
    one and malformed ones are dropped instead of rejecting the request.
    """

    query: str
    name: Optional[str] = None
    songs: List[Dict[str, Any]] = Field(default_factory=list)
    create_on_spotify: bool = False


class PlaylistSummary(BaseModel):
    id: str
    name: str
    description: str
    source_query: str
    created_at: datetime
    remote_url: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_playlist(cls, playlist: LocalPlaylist) -> "PlaylistSummary":
        return cls(
            id=playlist.id,
            name=playlist.name,
            description=playlist.description,
            source_query=playlist.source_query,
            created_at=playlist.created_at,
            remote_url=playlist.remote_url,
            image_url=playlist.image_url,
        )


class TrackInfo(BaseModel):
    id: str
    position: int
    name: str
    artist: str
    album: Optional[str] = None
    reasoning: Optional[str] = None
    remote_track_id: Optional[str] = None
    preview_url: Optional[str] = None
    image_url: Optional[str] = None
    duration_ms: Optional[int] = None

    @classmethod
    def from_track(cls, track: LocalTrack) -> "TrackInfo":
        return cls(**track.model_dump(exclude={"playlist_id"}))


class PlaylistDetail(BaseModel):
    playlist: PlaylistSummary
    tracks: List[TrackInfo]

