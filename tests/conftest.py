from typing import Any

import pytest

from app.config import SpotifyConfig
from app.data import (
    CredentialRepository,
    DocumentStore,
    PlaylistRepository,
    TrackRepository,
)
from app.pipeline import PlaylistReconciler

from fakes import FakeMatcher, FakeRemote, StubRefresher


@pytest.fixture
def config() -> SpotifyConfig:
    return SpotifyConfig(
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="http://127.0.0.1:8888/auth/spotify/callback",
        max_retries=0,
        backoff_seconds=0,
        expiry_margin_seconds=0,
    )


@pytest.fixture
def store() -> DocumentStore:
    return DocumentStore()


@pytest.fixture
def playlists(store: DocumentStore) -> PlaylistRepository:
    return PlaylistRepository(store)


@pytest.fixture
def tracks(store: DocumentStore) -> TrackRepository:
    return TrackRepository(store)


@pytest.fixture
def credentials(store: DocumentStore) -> CredentialRepository:
    return CredentialRepository(store)


@pytest.fixture
def build_reconciler(playlists, tracks):
    def _build(
        matcher=None,
        remote=None,
        refresher=None,
        **kwargs: Any,
    ) -> PlaylistReconciler:
        return PlaylistReconciler(
            playlists=playlists,
            tracks=tracks,
            refresher=refresher or StubRefresher(),
            matcher=matcher or FakeMatcher(),
            remote=remote or FakeRemote(),
            **kwargs,
        )

    return _build
