from typing import List, Optional

import requests

from app.config import SpotifyConfig
from app.core import Credential, RemoteCreateFailed, RemotePlaylist, log_warning

from .http import SpotifyHttpError, bearer, new_session, raise_for_spotify_status


class SpotifyPlaylistClient:
    """
    Playlist writes on Spotify: create a playlist, append tracks.

    Neither call is retried. A failed create may still have created the
    playlist, and a failed append may have added part of the batch.
    """

    def __init__(
        self,
        config: SpotifyConfig,
        session: Optional[requests.Session] = None,
    ):
        self.config = config
        self.session = session or new_session()

    def create_playlist(
        self,
        credential: Credential,
        name: str,
        description: str,
        public: bool = False,
    ) -> RemotePlaylist:
        url = f"{self.config.api_base}/users/{credential.remote_user_id}/playlists"
        payload = {"name": name, "description": description, "public": public}
        try:
            response = self.session.post(
                url,
                headers=bearer(credential.access_token),
                json=payload,
                timeout=self.config.timeout,
            )
            raise_for_spotify_status(response)
            data = response.json()
        except (SpotifyHttpError, requests.RequestException, ValueError) as exc:
            raise RemoteCreateFailed(f"Failed to create Spotify playlist: {exc}") from exc

        images = data.get("images") or []
        # remote_url is write-once, so it must never be empty.
        external_url = (data.get("external_urls") or {}).get("spotify") or (
            f"https://open.spotify.com/playlist/{data['id']}"
        )
        return RemotePlaylist(
            id=data["id"],
            external_url=external_url,
            image_url=images[0].get("url") if images else None,
        )

    def add_tracks(
        self,
        credential: Credential,
        playlist_id: str,
        uris: List[str],
    ) -> bool:
        """
        Append one batch (at most 100 URIs) to the playlist.

        Returns True when Spotify confirmed the batch, False otherwise.
        """
        url = f"{self.config.api_base}/playlists/{playlist_id}/tracks"
        try:
            response = self.session.post(
                url,
                headers=bearer(credential.access_token),
                json={"uris": uris},
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            log_warning(f"Failed to add {len(uris)} tracks to Spotify playlist: {exc}")
            return False

        if not response.ok:
            log_warning(
                f"Failed to add {len(uris)} tracks to Spotify playlist "
                f"(HTTP {response.status_code})"
            )
            return False
        return True
