"""Public façade for the app.data package.

This module exposes the document store and the repositories built on top of
it (credentials, playlists, tracks). Callers should use this façade instead
of importing from the internal store or repository modules directly.
"""

from .credentials import CredentialRepository
from .playlists import PlaylistRepository, TrackRepository
from .store import COLLECTIONS, DocumentStore

__all__ = [
    "DocumentStore",
    "COLLECTIONS",
    "CredentialRepository",
    "PlaylistRepository",
    "TrackRepository",
]
