import argparse
import sys
from typing import List, Optional

from app.config import REPORTS_DIR
from app.core import (
    PlaylistTransferError,
    configure_logging,
    log_error,
    log_info,
    log_section,
    log_step,
    log_success,
    log_warning,
)
from app.pipeline import write_not_found_report
from app.services import Services, build_services


def list_playlists(services: Services, user_id: str) -> int:
    log_section(f"Playlists of {user_id}")
    playlists = services.playlists.list_for_owner(user_id)
    if not playlists:
        log_info("No playlists yet.")
        return 0
    for p in playlists:
        status = p.remote_url or "(not on Spotify)"
        log_info(f"{p.id}  {p.name}  {status}")
    return 0


def transfer_playlist(
    services: Services,
    playlist_id: str,
    user_id: str,
    write_report: bool = False,
    reports_dir: str = REPORTS_DIR,
) -> int:
    if not services.config.is_configured:
        log_error(
            "Please set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET in the .env file."
        )
        return 2

    try:
        result = services.reconciler.transfer(playlist_id, user_id)
    except PlaylistTransferError as e:
        log_error(f"{type(e).__name__}: {e}")
        return 1

    log_success(f"Spotify playlist: {result.remote_url}")
    log_info(
        f"{result.tracks_found}/{result.total_tracks} tracks found, "
        f"{result.tracks_added} added."
    )

    if result.not_found:
        log_warning(f"{len(result.not_found)} tracks not found on Spotify.")
        if write_report:
            playlist = services.playlists.get(playlist_id)
            report_path = write_not_found_report(
                playlist,
                result,
                filename=f"not_found_{playlist_id}.md",
                reports_dir=reports_dir,
            )
            log_step(f"See report: {report_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Manage AI-generated playlists and push them to Spotify."
    )
    parser.add_argument("--user", required=True, help="Owning user id")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List the user's playlists")

    transfer = sub.add_parser("transfer", help="Create a playlist on Spotify")
    transfer.add_argument("playlist_id")
    transfer.add_argument(
        "--report",
        action="store_true",
        help="Write a markdown report of tracks not found on Spotify",
    )
    transfer.add_argument("--reports-dir", default=REPORTS_DIR)
    return parser


def main(argv: Optional[List[str]] = None, services: Optional[Services] = None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)
    services = services or build_services()

    if args.command == "list":
        return list_playlists(services, args.user)
    return transfer_playlist(
        services,
        args.playlist_id,
        args.user,
        write_report=args.report,
        reports_dir=args.reports_dir,
    )


if __name__ == "__main__":
    sys.exit(main())
