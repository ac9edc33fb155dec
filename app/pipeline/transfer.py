"""Transfer of a local (model-generated) playlist to Spotify.

One transfer walks through these stages, in order:

  AUTH_CHECK                caller owns the playlist
  ALREADY_TRANSFERRED_CHECK playlist has no remote_url yet
  TOKEN_READY               a non-expired Spotify credential
  REMOTE_CREATE             a new private Spotify playlist
  MATCH_LOOP                every local track resolved (or missed)
  BATCH_ADD                 matched URIs appended, 100 per request
  PERSIST_RESULT            remote_url written once, track metadata saved

Failures before MATCH_LOOP are fatal and leave the local playlist untouched.
Misses and rejected batches are not: they are logged and only show up in the
returned counts.

The already-transferred check and the final remote_url write are kept
together by a per-playlist lock, and the write itself is a compare-and-set,
so two concurrent transfers of the same playlist cannot both succeed.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import threading
from typing import List, Optional
import weakref

from app.config import (
    ADD_TRACKS_BATCH_SIZE,
    DEFAULT_PLAYLIST_IMAGE_URL,
)
from app.core import (
    AlreadyTransferred,
    Credential,
    LocalPlaylist,
    LocalTrack,
    PlaylistNotFound,
    RemotePlaylist,
    TrackMatch,
    TransferResult,
    Unauthorized,
    log_error,
    log_info,
    log_progress,
    log_section,
    log_step,
    log_success,
    log_warning,
)
from app.data import PlaylistRepository, TrackRepository
from app.spotify import (
    SpotifyPlaylistClient,
    TokenRefresher,
    TrackMatcher,
    chunked,
)


@dataclass
class _Resolved:
    """Outcome of the match loop for one local track."""

    track: LocalTrack
    uri: Optional[str] = None
    match: Optional[TrackMatch] = None
    reused: bool = False

    @property
    def found(self) -> bool:
        return self.uri is not None


def describe_playlist(playlist: LocalPlaylist) -> str:
    if playlist.description:
        return playlist.description
    return f'Generated from: "{playlist.source_query}"'


class PlaylistReconciler:
    def __init__(
        self,
        playlists: PlaylistRepository,
        tracks: TrackRepository,
        refresher: TokenRefresher,
        matcher: TrackMatcher,
        remote: SpotifyPlaylistClient,
        batch_size: int = ADD_TRACKS_BATCH_SIZE,
        max_workers: int = 1,
        default_image_url: str = DEFAULT_PLAYLIST_IMAGE_URL,
    ):
        self.playlists = playlists
        self.tracks = tracks
        self.refresher = refresher
        self.matcher = matcher
        self.remote = remote
        self.batch_size = batch_size
        self.max_workers = max(1, max_workers)
        self.default_image_url = default_image_url
        # Entries vanish once no caller holds the lock.
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    def _lock_for(self, playlist_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(playlist_id, threading.Lock())

    # ---------- stages ----------

    def _check_owner(self, playlist_id: str, caller_user_id: Optional[str]) -> LocalPlaylist:
        if not caller_user_id:
            raise Unauthorized()
        playlist = self.playlists.get(playlist_id)
        if playlist is None:
            raise PlaylistNotFound()
        if playlist.owner_id != caller_user_id:
            raise Unauthorized("Playlist belongs to another user.")
        return playlist

    def _resolve_one(self, track: LocalTrack, credential: Credential) -> _Resolved:
        if track.remote_track_id:
            return _Resolved(
                track=track,
                uri=f"spotify:track:{track.remote_track_id}",
                reused=True,
            )
        try:
            match = self.matcher.search(track.name, track.artist, credential)
        except Exception as exc:  # noqa: BLE001
            log_warning(f"Search crashed for {track.label}: {exc}")
            match = None
        if match is None:
            return _Resolved(track=track)
        return _Resolved(track=track, uri=match.uri, match=match)

    def _match_all(
        self, tracks: List[LocalTrack], credential: Credential
    ) -> List[_Resolved]:
        """Resolve every track; the result list follows the input order."""
        if self.max_workers == 1 or len(tracks) <= 1:
            resolved = []
            for i, track in enumerate(tracks, start=1):
                resolved.append(self._resolve_one(track, credential))
                if i % 10 == 0 or i == len(tracks):
                    log_progress(i, len(tracks), prefix="  Matching tracks")
            return resolved

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            # map() yields in submission order, whatever the completion order.
            return list(pool.map(lambda t: self._resolve_one(t, credential), tracks))

    def _add_batches(
        self,
        credential: Credential,
        remote_playlist: RemotePlaylist,
        resolved: List[_Resolved],
    ) -> List[_Resolved]:
        """Append found tracks in order; return the ones Spotify confirmed."""
        found = [r for r in resolved if r.found]
        confirmed: List[_Resolved] = []
        start = 0
        for uris in chunked([r.uri for r in found], self.batch_size):
            batch = found[start : start + len(uris)]
            if self.remote.add_tracks(credential, remote_playlist.id, uris):
                confirmed.extend(batch)
            else:
                log_warning(
                    f"Batch of {len(uris)} tracks starting at #{start + 1} "
                    "was not added."
                )
            start += len(uris)
        return confirmed

    def _persist(
        self,
        playlist: LocalPlaylist,
        remote_playlist: RemotePlaylist,
        image_url: str,
        confirmed: List[_Resolved],
    ) -> None:
        if not self.playlists.set_remote_link_if_unset(
            playlist.id, remote_playlist.external_url, image_url
        ):
            log_error(
                f"Playlist {playlist.id} was linked by another transfer; "
                f"Spotify playlist {remote_playlist.external_url} is orphaned."
            )
            raise AlreadyTransferred()

        for r in confirmed:
            if r.reused or r.match is None:
                continue
            self.tracks.update_remote_metadata(
                r.track.id,
                remote_track_id=r.match.id,
                preview_url=r.match.preview_url,
                image_url=r.match.image_url,
                duration_ms=r.match.duration_ms,
            )

    # ---------- entrypoint ----------

    def transfer(self, playlist_id: str, caller_user_id: Optional[str]) -> TransferResult:
        playlist = self._check_owner(playlist_id, caller_user_id)

        with self._lock_for(playlist_id):
            playlist = self.playlists.get(playlist_id) or playlist
            if playlist.is_transferred:
                raise AlreadyTransferred()

            log_section(f"Transfer of '{playlist.name}' to Spotify")
            credential = self.refresher.ensure_valid_token(playlist.owner_id)

            log_step("Creating Spotify playlist...")
            remote_playlist = self.remote.create_playlist(
                credential,
                name=playlist.name,
                description=describe_playlist(playlist),
                public=False,
            )
            image_url = remote_playlist.image_url or self.default_image_url

            tracks = self.tracks.list_for_playlist(playlist_id)
            log_step(f"Matching {len(tracks)} tracks on Spotify...")
            resolved = self._match_all(tracks, credential)

            not_found = [r.track.label for r in resolved if not r.found]
            for label in not_found:
                log_warning(f"Not found on Spotify: {label}")

            confirmed = self._add_batches(credential, remote_playlist, resolved)
            self._persist(playlist, remote_playlist, image_url, confirmed)

        found = sum(1 for r in resolved if r.found)
        log_success(
            f"Spotify playlist created: {found}/{len(tracks)} tracks found, "
            f"{len(confirmed)} added."
        )
        if not_found:
            log_info(f"{len(not_found)} tracks could not be matched.")

        return TransferResult(
            remote_url=remote_playlist.external_url,
            image_url=image_url,
            tracks_found=found,
            tracks_added=len(confirmed),
            total_tracks=len(tracks),
            not_found=not_found,
        )
