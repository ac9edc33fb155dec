import os
from typing import List

from app.config import REPORTS_DIR
from app.core import LocalPlaylist, TransferResult


def write_not_found_report(
    playlist: LocalPlaylist,
    result: TransferResult,
    filename: str,
    reports_dir: str = REPORTS_DIR,
) -> str:
    """
    Write a markdown report listing the tracks of a transfer that Spotify
    search could not match.
    Returns the full path of the report file.
    """
    os.makedirs(reports_dir, exist_ok=True)
    path = os.path.join(reports_dir, filename)

    not_found: List[str] = sorted(result.not_found)

    with open(path, "w", encoding="utf-8") as f:
        f.write(f"# Tracks not found on Spotify: {playlist.name}\n\n")
        f.write(f"Spotify playlist: {result.remote_url}\n\n")
        f.write(
            f"Found {result.tracks_found}/{result.total_tracks}, "
            f"added {result.tracks_added}, missing {len(not_found)}\n\n"
        )
        for label in not_found:
            f.write(f"- {label}\n")

    return path
