from typing import Dict, Iterator, List, Optional

import requests

from app.config import SpotifyConfig
from app.core import Credential, TrackMatch, log_warning

from .http import bearer, new_session


def _clean(text: str) -> str:
    # Double quotes would close the field filter early.
    return " ".join(text.replace('"', " ").split())


def build_track_query(track_name: str, artist_name: str) -> str:
    """
    Field-scoped Spotify search query.

      build_track_query("Hey Jude", "The Beatles")
      -> 'track:"Hey Jude" artist:"The Beatles"'
    """
    return f'track:"{_clean(track_name)}" artist:"{_clean(artist_name)}"'


def track_match_from_item(item: Dict) -> TrackMatch:
    """Map a Spotify track object onto a TrackMatch."""
    album = item.get("album") or {}
    images = album.get("images") or []
    return TrackMatch(
        id=item["id"],
        uri=item.get("uri") or f"spotify:track:{item['id']}",
        name=item.get("name", ""),
        artists=[a.get("name", "") for a in item.get("artists") or []],
        album=album.get("name"),
        preview_url=item.get("preview_url"),
        image_url=images[0].get("url") if images else None,
        duration_ms=item.get("duration_ms"),
    )


class TrackMatcher:
    """
    Resolves a (track, artist) pair to Spotify's top-ranked track.

    A miss is an ordinary outcome: model-suggested songs often do not exist
    verbatim in the catalog. Empty results and failed requests return None
    and are only logged.
    """

    def __init__(
        self,
        config: SpotifyConfig,
        session: Optional[requests.Session] = None,
    ):
        self.config = config
        self.session = session or new_session(
            retries=config.max_retries,
            backoff_seconds=config.backoff_seconds,
        )

    def search(
        self,
        track_name: str,
        artist_name: str,
        credential: Credential,
    ) -> Optional[TrackMatch]:
        params = {
            "q": build_track_query(track_name, artist_name),
            "type": "track",
            "limit": 1,
        }
        try:
            response = self.session.get(
                f"{self.config.api_base}/search",
                params=params,
                headers=bearer(credential.access_token),
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            log_warning(
                f'Spotify search failed for "{track_name}" by "{artist_name}": {exc}'
            )
            return None

        if not response.ok:
            log_warning(
                f'Spotify search failed for "{track_name}" by "{artist_name}" '
                f"(HTTP {response.status_code})"
            )
            return None

        try:
            items: List[Dict] = (response.json().get("tracks") or {}).get("items") or []
        except ValueError:
            log_warning(f'Spotify search returned invalid JSON for "{track_name}".')
            return None

        if not items:
            return None
        return track_match_from_item(items[0])


def chunked(items: List[str], size: int) -> Iterator[List[str]]:
    """
    Yield consecutive slices of at most `size` items, preserving order.

      list(chunked(["a", "b", "c"], 2)) -> [["a", "b"], ["c"]]
    """
    if size <= 0:
        raise ValueError("size must be positive")
    for i in range(0, len(items), size):
        yield items[i : i + size]
