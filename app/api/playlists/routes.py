from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from app.core import (
    LocalPlaylist,
    PlaylistTransferError,
    SongSuggestion,
    TransferResult,
    log_error,
    log_info,
    log_step,
)
from app.pipeline import create_generated_playlist
from app.services import Services

from ..deps import get_current_user_id, get_services, raise_http
from .schemas import (
    CreatePlaylistRequest,
    PlaylistDetail,
    PlaylistSummary,
    TrackInfo,
)

router = APIRouter()


def _owned_playlist(services: Services, playlist_id: str, user_id: str) -> LocalPlaylist:
    playlist = services.playlists.get(playlist_id)
    # Someone else's playlist is reported as missing.
    if playlist is None or playlist.owner_id != user_id:
        raise HTTPException(status_code=404, detail="Playlist not found.")
    return playlist


def _transfer_in_background(services: Services, playlist_id: str, user_id: str) -> None:
    try:
        result = services.reconciler.transfer(playlist_id, user_id)
        log_info(
            f"Spotify playlist created: {result.tracks_found}/{result.total_tracks} "
            "tracks found"
        )
    except PlaylistTransferError as exc:
        log_error(f"Failed to create Spotify playlist for {playlist_id}: {exc}")


@router.get("", response_model=List[PlaylistSummary])
def list_playlists(
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> List[PlaylistSummary]:
    """
    The caller's playlists, newest first.
    """
    return [
        PlaylistSummary.from_playlist(p)
        for p in services.playlists.list_for_owner(user_id)
    ]


@router.post("", response_model=PlaylistDetail, status_code=201)
def create_playlist(
    body: CreatePlaylistRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> PlaylistDetail:
    """
    Store a generated playlist.

    With `create_on_spotify`, the transfer runs after the response is sent;
    its failure is only logged and never fails this request.
    """
    try:
        playlist, tracks = create_generated_playlist(
            services.playlists,
            services.tracks,
            owner_id=user_id,
            query=body.query,
            raw_songs=body.songs,
            name=body.name,
        )
    except PlaylistTransferError as e:
        raise_http(e)

    if body.create_on_spotify:
        log_step(f"Scheduling Spotify transfer for playlist {playlist.id}...")
        background_tasks.add_task(_transfer_in_background, services, playlist.id, user_id)

    return PlaylistDetail(
        playlist=PlaylistSummary.from_playlist(playlist),
        tracks=[TrackInfo.from_track(t) for t in tracks],
    )


@router.get("/{playlist_id}", response_model=PlaylistDetail)
def get_playlist(
    playlist_id: str,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> PlaylistDetail:
    playlist = _owned_playlist(services, playlist_id, user_id)
    tracks = services.tracks.list_for_playlist(playlist_id)
    return PlaylistDetail(
        playlist=PlaylistSummary.from_playlist(playlist),
        tracks=[TrackInfo.from_track(t) for t in tracks],
    )


@router.post("/{playlist_id}/tracks", response_model=TrackInfo, status_code=201)
def add_track(
    playlist_id: str,
    body: SongSuggestion,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> TrackInfo:
    """
    Append one song to the end of the caller's playlist.
    """
    _owned_playlist(services, playlist_id, user_id)
    track = services.tracks.add(playlist_id, body)
    log_info(f"Added {track.label} to playlist {playlist_id}.")
    return TrackInfo.from_track(track)


@router.delete("/{playlist_id}")
def delete_playlist(
    playlist_id: str,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> dict:
    _owned_playlist(services, playlist_id, user_id)
    services.playlists.delete(playlist_id)
    return {"deleted": True}


@router.post("/{playlist_id}/spotify", response_model=TransferResult)
def transfer_to_spotify(
    playlist_id: str,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> TransferResult:
    """
    Create the playlist on Spotify and return the match summary.

    Fatal problems (not owner, not connected, token refresh rejected,
    already transferred, playlist creation rejected) come back as HTTP
    errors; unmatched tracks do not.
    """
    try:
        return services.reconciler.transfer(playlist_id, user_id)
    except PlaylistTransferError as e:
        raise_http(e)
