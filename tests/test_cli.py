from pathlib import Path

from app.data import DocumentStore
from app.pipeline import create_generated_playlist
from app.services import build_services
import main

from fakes import FakeMatcher, FakeRemote, StubRefresher, make_match


def _services(config):
    services = build_services(config=config, store=DocumentStore())
    services.reconciler.refresher = StubRefresher()
    services.reconciler.matcher = FakeMatcher({("A", "X"): make_match("a")})
    services.reconciler.remote = FakeRemote()
    return services


def test_cli_transfer_writes_report(config, tmp_path: Path) -> None:
    services = _services(config)
    playlist, _ = create_generated_playlist(
        services.playlists,
        services.tracks,
        owner_id="user-1",
        query="q",
        raw_songs=[{"name": "A", "artist": "X"}, {"name": "B", "artist": "Y"}],
    )

    code = main.main(
        [
            "--user", "user-1",
            "transfer", playlist.id,
            "--report", "--reports-dir", str(tmp_path),
        ],
        services=services,
    )

    assert code == 0
    assert services.playlists.get(playlist.id).remote_url
    report = tmp_path / f"not_found_{playlist.id}.md"
    assert report.exists()
    assert "Y – B" in report.read_text(encoding="utf-8")


def test_cli_transfer_failure_returns_nonzero(config) -> None:
    services = _services(config)

    code = main.main(["--user", "user-1", "transfer", "missing"], services=services)

    assert code == 1


def test_cli_list(config) -> None:
    services = _services(config)
    services.playlists.create("user-1", "Mine")

    assert main.main(["--user", "user-1", "list"], services=services) == 0
