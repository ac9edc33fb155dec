from datetime import datetime, timezone
from typing import List, Optional

from app.core import LocalPlaylist, LocalTrack, SongSuggestion, utcnow

from .store import Document, DocumentStore

PLAYLISTS = "playlists"
TRACKS = "tracks"


def _playlist_from_doc(doc: Document) -> LocalPlaylist:
    return LocalPlaylist(**doc)


def _track_from_doc(doc: Document) -> LocalTrack:
    return LocalTrack(**doc)


class PlaylistRepository:
    """Local playlists; each is owned by exactly one user."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def create(
        self,
        owner_id: str,
        name: str,
        description: str = "",
        source_query: str = "",
    ) -> LocalPlaylist:
        doc = {
            "owner_id": owner_id,
            "name": name,
            "description": description,
            "source_query": source_query,
            "created_at": utcnow().isoformat(),
            "remote_url": None,
            "image_url": None,
        }
        playlist_id = self.store.insert(PLAYLISTS, doc)
        return self.get(playlist_id)

    def get(self, playlist_id: str) -> Optional[LocalPlaylist]:
        doc = self.store.get(PLAYLISTS, playlist_id)
        return _playlist_from_doc(doc) if doc else None

    def list_for_owner(self, owner_id: str) -> List[LocalPlaylist]:
        """Newest first."""
        playlists = [
            _playlist_from_doc(doc)
            for doc in self.store.find(PLAYLISTS, owner_id=owner_id)
        ]
        oldest = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(playlists, key=lambda p: p.created_at or oldest, reverse=True)

    def delete(self, playlist_id: str) -> bool:
        """Delete the playlist and every track that belongs to it."""
        self.store.delete_where(TRACKS, playlist_id=playlist_id)
        return self.store.delete(PLAYLISTS, playlist_id)

    def set_remote_link_if_unset(
        self,
        playlist_id: str,
        remote_url: str,
        image_url: Optional[str] = None,
    ) -> bool:
        """
        Record the Spotify URL (and cover) unless one is already recorded.

        This is a compare-and-set: it returns False without writing anything
        when another transfer got there first.
        """
        fields = {"remote_url": remote_url}
        if image_url:
            fields["image_url"] = image_url
        return self.store.patch_if(
            PLAYLISTS,
            playlist_id,
            fields,
            condition=lambda doc: not doc.get("remote_url"),
        )


class TrackRepository:
    """Local tracks, ordered by `position` inside their playlist."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def add(self, playlist_id: str, song: SongSuggestion) -> LocalTrack:
        position = len(self.store.find(TRACKS, playlist_id=playlist_id))
        doc = {
            "playlist_id": playlist_id,
            "position": position,
            "name": song.name,
            "artist": song.artist,
            "album": song.album,
            "reasoning": song.reasoning,
        }
        track_id = self.store.insert(TRACKS, doc)
        return _track_from_doc(self.store.get(TRACKS, track_id))

    def list_for_playlist(self, playlist_id: str) -> List[LocalTrack]:
        tracks = [
            _track_from_doc(doc)
            for doc in self.store.find(TRACKS, playlist_id=playlist_id)
        ]
        return sorted(tracks, key=lambda t: t.position)

    def update_remote_metadata(
        self,
        track_id: str,
        remote_track_id: Optional[str] = None,
        preview_url: Optional[str] = None,
        image_url: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> LocalTrack:
        """Write only the values Spotify actually returned; None leaves a field as is."""
        fields = {
            "remote_track_id": remote_track_id,
            "preview_url": preview_url,
            "image_url": image_url,
            "duration_ms": duration_ms,
        }
        fields = {k: v for k, v in fields.items() if v is not None}
        return _track_from_doc(self.store.patch(TRACKS, track_id, fields))
