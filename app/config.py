from dataclasses import dataclass, field
import os
from typing import List

from dotenv import load_dotenv

load_dotenv()

# Base & data directories
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.getenv("DATA_DIR", os.path.join(BASE_DIR, "data"))
REPORTS_DIR = os.path.join(BASE_DIR, "reports")

# Local document store
STORE_FILE = os.getenv("STORE_FILE", os.path.join(DATA_DIR, "store.json"))

# Spotify credentials (REQUIRED)
SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID")
SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET")
SPOTIFY_REDIRECT_URI = os.getenv(
    "SPOTIFY_REDIRECT_URI", "http://127.0.0.1:8888/auth/spotify/callback"
)

# Spotify API constants
SPOTIFY_AUTH_URL = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_API_BASE = "https://api.spotify.com/v1"

SCOPES = [
    "playlist-modify-public",
    "playlist-modify-private",
    "user-read-private",
    "user-read-email",
]

# Transfer tuning
ADD_TRACKS_BATCH_SIZE = 100
DEFAULT_PLAYLIST_IMAGE_URL = os.getenv(
    "DEFAULT_PLAYLIST_IMAGE_URL",
    "https://misc.scdn.co/liked-songs/liked-songs-640.png",
)
DEFAULT_PLAYLIST_NAME = "AI Generated Playlist"
MATCH_MAX_WORKERS = int(os.getenv("MATCH_MAX_WORKERS", "1"))

# HTTP behaviour
SPOTIFY_HTTP_TIMEOUT_SECONDS = float(os.getenv("SPOTIFY_HTTP_TIMEOUT_SECONDS", "10"))
SPOTIFY_MAX_RETRIES = int(os.getenv("SPOTIFY_MAX_RETRIES", "3"))
SPOTIFY_BACKOFF_SECONDS = float(os.getenv("SPOTIFY_BACKOFF_SECONDS", "0.5"))
SPOTIFY_TOKEN_EXPIRY_MARGIN_SECONDS = int(
    os.getenv("SPOTIFY_TOKEN_EXPIRY_MARGIN_SECONDS", "60")
)


@dataclass
class SpotifyConfig:
    """
    Explicit Spotify settings handed to the clients at construction time.

    Defaults come from the module-level constants above; tests build their
    own instances instead of patching the environment.
    """

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = SPOTIFY_REDIRECT_URI
    auth_url: str = SPOTIFY_AUTH_URL
    token_url: str = SPOTIFY_TOKEN_URL
    api_base: str = SPOTIFY_API_BASE
    scopes: List[str] = field(default_factory=lambda: list(SCOPES))
    timeout: float = SPOTIFY_HTTP_TIMEOUT_SECONDS
    max_retries: int = SPOTIFY_MAX_RETRIES
    backoff_seconds: float = SPOTIFY_BACKOFF_SECONDS
    expiry_margin_seconds: int = SPOTIFY_TOKEN_EXPIRY_MARGIN_SECONDS

    @classmethod
    def from_env(cls) -> "SpotifyConfig":
        return cls(
            client_id=SPOTIFY_CLIENT_ID or "",
            client_secret=SPOTIFY_CLIENT_SECRET or "",
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)
