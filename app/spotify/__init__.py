"""Public façade for the app.spotify package.

This module exposes the Spotify Web API integration: OAuth flows and token
refresh, track search, and playlist writes. Callers should import these
symbols from this façade instead of the internal auth, tracks, or playlists
modules.
"""

from .auth import SpotifyAuthClient, SpotifyConnector, TokenGrant, TokenRefresher
from .http import SpotifyHttpError, new_session
from .playlists import SpotifyPlaylistClient
from .tracks import TrackMatcher, build_track_query, chunked, track_match_from_item

__all__ = [
    "SpotifyAuthClient",
    "SpotifyConnector",
    "TokenGrant",
    "TokenRefresher",
    "SpotifyHttpError",
    "new_session",
    "SpotifyPlaylistClient",
    "TrackMatcher",
    "build_track_query",
    "chunked",
    "track_match_from_item",
]
