from dataclasses import dataclass
from typing import Optional

from app.config import MATCH_MAX_WORKERS, STORE_FILE, SpotifyConfig
from app.data import (
    CredentialRepository,
    DocumentStore,
    PlaylistRepository,
    TrackRepository,
)
from app.pipeline import PlaylistReconciler
from app.spotify import (
    SpotifyAuthClient,
    SpotifyConnector,
    SpotifyPlaylistClient,
    TokenRefresher,
    TrackMatcher,
)


@dataclass
class Services:
    """Everything the API and the CLI need, wired around one store."""

    config: SpotifyConfig
    store: DocumentStore
    credentials: CredentialRepository
    playlists: PlaylistRepository
    tracks: TrackRepository
    connector: SpotifyConnector
    refresher: TokenRefresher
    reconciler: PlaylistReconciler


def build_services(
    config: Optional[SpotifyConfig] = None,
    store: Optional[DocumentStore] = None,
    max_workers: int = MATCH_MAX_WORKERS,
) -> Services:
    config = config or SpotifyConfig.from_env()
    store = store or DocumentStore(STORE_FILE)

    credentials = CredentialRepository(store)
    playlists = PlaylistRepository(store)
    tracks = TrackRepository(store)

    auth_client = SpotifyAuthClient(config)
    refresher = TokenRefresher(
        credentials,
        auth_client,
        margin_seconds=config.expiry_margin_seconds,
    )
    reconciler = PlaylistReconciler(
        playlists=playlists,
        tracks=tracks,
        refresher=refresher,
        matcher=TrackMatcher(config),
        remote=SpotifyPlaylistClient(config),
        max_workers=max_workers,
    )

    return Services(
        config=config,
        store=store,
        credentials=credentials,
        playlists=playlists,
        tracks=tracks,
        connector=SpotifyConnector(credentials, auth_client),
        refresher=refresher,
        reconciler=reconciler,
    )
