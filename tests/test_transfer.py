import gc
import threading

import pytest

from app.core import (
    AlreadyTransferred,
    NotConnected,
    PlaylistNotFound,
    RemoteCreateFailed,
    SongSuggestion,
    Unauthorized,
)
from app.spotify import SpotifyPlaylistClient

from fakes import (
    FakeMatcher,
    FakeRemote,
    FakeResponse,
    FakeSession,
    StubRefresher,
    make_match,
)


def _make_playlist(playlists, tracks, songs, owner_id="user-1", description=""):
    playlist = playlists.create(
        owner_id=owner_id,
        name="Rainy day",
        description=description,
        source_query="songs for a rainy day",
    )
    stored = [
        tracks.add(playlist.id, SongSuggestion(name=name, artist=artist))
        for name, artist in songs
    ]
    return playlist, stored


def test_end_to_end_one_found_one_missing(playlists, tracks, build_reconciler) -> None:
    playlist, (song_a, song_b) = _make_playlist(
        playlists, tracks, [("Song A", "Artist X"), ("Song B", "Artist Y")]
    )
    match_a = make_match("1")
    matcher = FakeMatcher({("Song A", "Artist X"): match_a})
    remote = FakeRemote()

    result = build_reconciler(matcher=matcher, remote=remote).transfer(
        playlist.id, "user-1"
    )

    assert result.tracks_found == 1
    assert result.total_tracks == 2
    assert result.tracks_added == 1
    assert result.not_found == ["Artist Y – Song B"]
    assert remote.batches == [["spotify:track:1"]]

    stored_playlist = playlists.get(playlist.id)
    assert stored_playlist.remote_url == result.remote_url
    assert stored_playlist.image_url == "https://cover/1"

    updated_a, unchanged_b = tracks.list_for_playlist(playlist.id)
    assert updated_a.remote_track_id == "1"
    assert updated_a.preview_url == match_a.preview_url
    assert updated_a.image_url == match_a.image_url
    assert updated_a.duration_ms == match_a.duration_ms
    assert unchanged_b == song_b


def test_second_transfer_is_rejected_without_new_remote_playlist(
    playlists, tracks, build_reconciler
) -> None:
    playlist, _ = _make_playlist(playlists, tracks, [("Song A", "Artist X")])
    remote = FakeRemote()
    reconciler = build_reconciler(remote=remote)

    reconciler.transfer(playlist.id, "user-1")
    with pytest.raises(AlreadyTransferred):
        reconciler.transfer(playlist.id, "user-1")

    assert len(remote.created) == 1


def test_tracks_with_remote_id_are_not_searched_again(
    playlists, tracks, build_reconciler
) -> None:
    playlist, (done, pending) = _make_playlist(
        playlists, tracks, [("Song A", "Artist X"), ("Song B", "Artist Y")]
    )
    tracks.update_remote_metadata(done.id, remote_track_id="already")
    matcher = FakeMatcher({("Song B", "Artist Y"): make_match("2")})
    remote = FakeRemote()

    result = build_reconciler(matcher=matcher, remote=remote).transfer(
        playlist.id, "user-1"
    )

    assert matcher.calls == [("Song B", "Artist Y")]
    assert remote.batches == [["spotify:track:already", "spotify:track:2"]]
    assert result.tracks_found == 2


def test_add_batch_keeps_playlist_order(playlists, tracks, build_reconciler) -> None:
    playlist, _ = _make_playlist(
        playlists, tracks, [("A", "X"), ("B", "X"), ("C", "X")]
    )
    matcher = FakeMatcher({("A", "X"): make_match("a"), ("C", "X"): make_match("c")})
    remote = FakeRemote()

    build_reconciler(matcher=matcher, remote=remote).transfer(playlist.id, "user-1")

    assert remote.batches == [["spotify:track:a", "spotify:track:c"]]


def test_parallel_matching_keeps_playlist_order(
    playlists, tracks, build_reconciler
) -> None:
    names = ["A", "B", "C", "D"]
    playlist, _ = _make_playlist(playlists, tracks, [(n, "X") for n in names])
    # Earlier tracks answer later, so completion order is reversed.
    delays = {"A": 0.06, "B": 0.04, "C": 0.02, "D": 0.0}
    matcher = FakeMatcher(
        {(n, "X"): make_match(n.lower()) for n in names},
        delay=lambda name: delays[name],
    )
    remote = FakeRemote()

    build_reconciler(matcher=matcher, remote=remote, max_workers=4).transfer(
        playlist.id, "user-1"
    )

    assert remote.batches == [[f"spotify:track:{n.lower()}" for n in names]]


def test_matches_are_added_in_batches_of_100(
    playlists, tracks, build_reconciler
) -> None:
    songs = [(f"Song {i}", "Artist") for i in range(250)]
    playlist, _ = _make_playlist(playlists, tracks, songs)
    matcher = FakeMatcher({song: make_match(str(i)) for i, song in enumerate(songs)})
    remote = FakeRemote()

    result = build_reconciler(matcher=matcher, remote=remote).transfer(
        playlist.id, "user-1"
    )

    assert [len(b) for b in remote.batches] == [100, 100, 50]
    flat = [uri for batch in remote.batches for uri in batch]
    assert flat == [f"spotify:track:{i}" for i in range(250)]
    assert result.tracks_found == 250


def test_no_match_at_all_still_creates_empty_playlist(
    playlists, tracks, build_reconciler
) -> None:
    playlist, _ = _make_playlist(playlists, tracks, [("A", "X"), ("B", "Y"), ("C", "Z")])
    remote = FakeRemote()

    result = build_reconciler(remote=remote).transfer(playlist.id, "user-1")

    assert result.tracks_found == 0
    assert result.tracks_added == 0
    assert result.total_tracks == 3
    assert len(remote.created) == 1
    assert remote.batches == []
    assert playlists.get(playlist.id).remote_url == result.remote_url


def test_search_exception_counts_as_miss(playlists, tracks, build_reconciler) -> None:
    class ExplodingMatcher(FakeMatcher):
        def search(self, track_name, artist_name, credential):
            super().search(track_name, artist_name, credential)
            if track_name == "A":
                raise RuntimeError("boom")
            return make_match("b")

    playlist, _ = _make_playlist(playlists, tracks, [("A", "X"), ("B", "X")])
    matcher = ExplodingMatcher()
    remote = FakeRemote()

    result = build_reconciler(matcher=matcher, remote=remote).transfer(
        playlist.id, "user-1"
    )

    assert len(matcher.calls) == 2
    assert result.tracks_found == 1
    assert remote.batches == [["spotify:track:b"]]


def test_failed_batch_is_skipped_and_not_persisted(
    playlists, tracks, build_reconciler
) -> None:
    songs = [(f"Song {i}", "Artist") for i in range(150)]
    playlist, _ = _make_playlist(playlists, tracks, songs)
    matcher = FakeMatcher({song: make_match(str(i)) for i, song in enumerate(songs)})
    remote = FakeRemote(failing_batches={0})

    result = build_reconciler(matcher=matcher, remote=remote).transfer(
        playlist.id, "user-1"
    )

    assert len(remote.batches) == 2
    assert result.tracks_found == 150
    assert result.tracks_added == 50

    stored = tracks.list_for_playlist(playlist.id)
    assert all(t.remote_track_id is None for t in stored[:100])
    assert [t.remote_track_id for t in stored[100:]] == [str(i) for i in range(100, 150)]
    assert playlists.get(playlist.id).remote_url == result.remote_url


def test_remote_create_failure_leaves_playlist_untouched(
    playlists, tracks, build_reconciler
) -> None:
    playlist, _ = _make_playlist(playlists, tracks, [("A", "X")])
    matcher = FakeMatcher({("A", "X"): make_match("a")})

    with pytest.raises(RemoteCreateFailed):
        build_reconciler(matcher=matcher, remote=FakeRemote(fail_create=True)).transfer(
            playlist.id, "user-1"
        )

    assert matcher.calls == []
    assert playlists.get(playlist.id).remote_url is None


def test_token_failure_aborts_before_remote_create(
    playlists, tracks, build_reconciler
) -> None:
    playlist, _ = _make_playlist(playlists, tracks, [("A", "X")])
    remote = FakeRemote()

    with pytest.raises(NotConnected):
        build_reconciler(
            remote=remote, refresher=StubRefresher(error=NotConnected())
        ).transfer(playlist.id, "user-1")

    assert remote.created == []


def test_caller_must_own_the_playlist(playlists, tracks, build_reconciler) -> None:
    playlist, _ = _make_playlist(playlists, tracks, [("A", "X")])
    refresher = StubRefresher()
    reconciler = build_reconciler(refresher=refresher)

    with pytest.raises(Unauthorized):
        reconciler.transfer(playlist.id, "someone-else")
    with pytest.raises(Unauthorized):
        reconciler.transfer(playlist.id, None)
    with pytest.raises(PlaylistNotFound):
        reconciler.transfer("missing", "user-1")

    assert refresher.calls == []


def test_description_and_cover_defaults(playlists, tracks, build_reconciler) -> None:
    playlist, _ = _make_playlist(playlists, tracks, [("A", "X")], description="")
    remote = FakeRemote(images=[])

    result = build_reconciler(
        remote=remote, default_image_url="https://default/cover.png"
    ).transfer(playlist.id, "user-1")

    assert remote.created == [
        {
            "name": "Rainy day",
            "description": 'Generated from: "songs for a rainy day"',
            "public": False,
        }
    ]
    assert result.image_url == "https://default/cover.png"
    assert playlists.get(playlist.id).image_url == "https://default/cover.png"


def test_lost_link_race_raises_already_transferred(
    playlists, tracks, build_reconciler
) -> None:
    playlist, _ = _make_playlist(playlists, tracks, [("A", "X")])

    class RacingRemote(FakeRemote):
        def create_playlist(self, credential, name, description, public=False):
            created = super().create_playlist(credential, name, description, public)
            # Another process links the playlist while this transfer runs.
            playlists.set_remote_link_if_unset(playlist.id, "https://elsewhere")
            return created

    with pytest.raises(AlreadyTransferred):
        build_reconciler(remote=RacingRemote()).transfer(playlist.id, "user-1")

    assert playlists.get(playlist.id).remote_url == "https://elsewhere"


def test_playlist_without_external_url_is_still_linked_once(
    config, playlists, tracks, build_reconciler
) -> None:
    playlist, _ = _make_playlist(playlists, tracks, [("A", "X")])
    session = FakeSession(
        [
            FakeResponse(201, {"id": "pl1", "images": []}),
            FakeResponse(201, {"snapshot_id": "s"}),
        ]
    )
    reconciler = build_reconciler(
        matcher=FakeMatcher({("A", "X"): make_match("1")}),
        remote=SpotifyPlaylistClient(config, session=session),
    )

    result = reconciler.transfer(playlist.id, "user-1")
    with pytest.raises(AlreadyTransferred):
        reconciler.transfer(playlist.id, "user-1")

    assert result.remote_url == "https://open.spotify.com/playlist/pl1"
    assert playlists.get(playlist.id).remote_url == result.remote_url
    assert len(session.calls) == 2


def test_concurrent_transfers_create_one_remote_playlist(
    playlists, tracks, build_reconciler
) -> None:
    playlist, _ = _make_playlist(playlists, tracks, [("A", "X"), ("B", "Y")])
    remote = FakeRemote()
    reconciler = build_reconciler(
        matcher=FakeMatcher({("A", "X"): make_match("1")}, delay=lambda _: 0.05),
        remote=remote,
    )
    outcomes = []

    def worker() -> None:
        try:
            reconciler.transfer(playlist.id, "user-1")
            outcomes.append("ok")
        except AlreadyTransferred:
            outcomes.append("already")

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["already", "already", "already", "ok"]
    assert len(remote.created) == 1
    assert remote.batches == [["spotify:track:1"]]


def test_playlist_locks_are_released_after_transfer(
    playlists, tracks, build_reconciler
) -> None:
    playlist, _ = _make_playlist(playlists, tracks, [("A", "X")])
    reconciler = build_reconciler()

    reconciler.transfer(playlist.id, "user-1")
    gc.collect()

    assert len(reconciler._locks) == 0
