"""Intake of model-generated playlists.

The language model hands back a list of loosely structured song dicts. They
are validated here, once, into SongSuggestion objects before anything is
stored, so the rest of the system never sees untyped payloads.
"""

from typing import Any, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from app.config import DEFAULT_PLAYLIST_NAME
from app.core import (
    InvalidSuggestions,
    LocalPlaylist,
    LocalTrack,
    SongSuggestion,
    log_info,
    log_success,
    log_warning,
)
from app.data import PlaylistRepository, TrackRepository


def parse_song_suggestions(raw_songs: Iterable[Any]) -> List[SongSuggestion]:
    """
    Keep the songs that have both a name and an artist, in their given order.

    Raises InvalidSuggestions when nothing usable is left.
    """
    songs: List[SongSuggestion] = []
    skipped = 0
    for raw in raw_songs or []:
        if isinstance(raw, SongSuggestion):
            songs.append(raw)
            continue
        if not isinstance(raw, dict):
            skipped += 1
            continue
        try:
            songs.append(SongSuggestion(**raw))
        except ValidationError:
            skipped += 1

    if skipped:
        log_warning(f"Skipped {skipped} malformed song suggestions.")
    if not songs:
        raise InvalidSuggestions()
    return songs


def create_generated_playlist(
    playlists: PlaylistRepository,
    tracks: TrackRepository,
    owner_id: str,
    query: str,
    raw_songs: Iterable[Any],
    name: Optional[str] = None,
) -> Tuple[LocalPlaylist, List[LocalTrack]]:
    """
    Store a generated playlist and its ordered tracks.

    Nothing is matched against Spotify here; that is the transfer's job.
    """
    songs = parse_song_suggestions(raw_songs)
    playlist = playlists.create(
        owner_id=owner_id,
        name=(name or "").strip() or DEFAULT_PLAYLIST_NAME,
        description=f'Generated from: "{query}"',
        source_query=query,
    )
    log_info(f"Storing {len(songs)} songs for playlist '{playlist.name}'.")
    stored = [tracks.add(playlist.id, song) for song in songs]
    log_success(f"Playlist {playlist.id} created with {len(stored)} tracks.")
    return playlist, stored
