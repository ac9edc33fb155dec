"""Shared HTTP plumbing for Spotify calls.

Every request carries a timeout. Idempotent calls (search, token refresh,
profile) go through a session whose adapter retries connection errors, 429
and 5xx answers with exponential backoff, honouring Retry-After when Spotify
sends one. Calls that must not be repeated (code exchange, playlist writes)
use a session without retries.
"""

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

RETRYABLE_STATUS = [429, 500, 502, 503, 504]


class SpotifyHttpError(Exception):
    """Non-2xx answer from Spotify (after retries, when retried)."""

    def __init__(self, status_code: int, message: str = ""):
        super().__init__(f"Spotify API error {status_code}: {message}".rstrip(": "))
        self.status_code = status_code


def new_session(retries: int = 0, backoff_seconds: float = 0.0) -> requests.Session:
    """
    Session for the Spotify endpoints.

    With `retries=0` every request is sent exactly once.
    """
    session = requests.Session()
    session.headers.update({"Accept": "application/json"})
    if retries > 0:
        retry = Retry(
            total=retries,
            backoff_factor=backoff_seconds,
            status_forcelist=RETRYABLE_STATUS,
            allowed_methods=["GET", "POST"],
            respect_retry_after_header=True,
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
    return session


def bearer(access_token: str) -> dict:
    return {"Authorization": f"Bearer {access_token}"}


def raise_for_spotify_status(response: requests.Response) -> None:
    if response.ok:
        return
    try:
        payload = response.json()
        error = payload.get("error")
        if isinstance(error, dict):
            message = error.get("message", "")
        else:
            message = payload.get("error_description") or str(error or "")
    except ValueError:
        message = response.text[:200]
    raise SpotifyHttpError(response.status_code, message)
