"""Public façade for the app.pipeline package.

This module exposes the playlist workflows: intake of generated playlists,
the Spotify transfer, and its report. Other packages should import pipeline
behaviour from this façade instead of the internal pipeline submodules.
"""

from .generation import create_generated_playlist, parse_song_suggestions
from .reporting import write_not_found_report
from .transfer import PlaylistReconciler, describe_playlist

__all__ = [
    "PlaylistReconciler",
    "describe_playlist",
    "create_generated_playlist",
    "parse_song_suggestions",
    "write_not_found_report",
]
