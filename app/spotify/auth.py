from dataclasses import dataclass
from datetime import datetime, timedelta
import threading
from typing import Callable, Dict, Optional
from urllib.parse import urlencode
import weakref

import requests
from requests.auth import HTTPBasicAuth

from app.config import SpotifyConfig
from app.core import (
    ConnectFailed,
    Credential,
    InvalidState,
    NotConnected,
    RefreshFailed,
    log_info,
    log_step,
    log_success,
    log_warning,
    utcnow,
)
from app.data import CredentialRepository

from .http import (
    SpotifyHttpError,
    bearer,
    new_session,
    raise_for_spotify_status,
)


@dataclass
class TokenGrant:
    """Tokens returned by the Spotify token endpoint."""

    access_token: str
    refresh_token: Optional[str]
    expires_at: datetime


class SpotifyAuthClient:
    """
    OAuth2 authorization-code and refresh-token flows against Spotify.

    The client id/secret are sent with HTTP basic auth; the bodies are form
    encoded as the token endpoint expects.

    `session` retries (refresh, profile). `exchange_session` never does:
    authorization codes are single-use. A caller-supplied `session` serves
    both unless `exchange_session` is given too.
    """

    def __init__(
        self,
        config: SpotifyConfig,
        session: Optional[requests.Session] = None,
        clock: Callable[[], datetime] = utcnow,
        exchange_session: Optional[requests.Session] = None,
    ):
        self.config = config
        self.session = session or new_session(
            retries=config.max_retries,
            backoff_seconds=config.backoff_seconds,
        )
        self.exchange_session = exchange_session or session or new_session()
        self.clock = clock

    def build_auth_url(self, state: str) -> str:
        params = {
            "response_type": "code",
            "client_id": self.config.client_id,
            "scope": " ".join(self.config.scopes),
            "redirect_uri": self.config.redirect_uri,
            "state": state,
            "show_dialog": "true",
        }
        return f"{self.config.auth_url}?{urlencode(params)}"

    def _token_request(self, session: requests.Session, data: Dict[str, str]) -> Dict:
        response = session.post(
            self.config.token_url,
            data=data,
            auth=HTTPBasicAuth(self.config.client_id, self.config.client_secret),
            timeout=self.config.timeout,
        )
        raise_for_spotify_status(response)
        return response.json()

    def _grant_from_payload(self, payload: Dict) -> TokenGrant:
        expires_in = int(payload.get("expires_in", 3600))
        return TokenGrant(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token") or None,
            expires_at=self.clock() + timedelta(seconds=expires_in),
        )

    def exchange_code(self, code: str) -> TokenGrant:
        payload = self._token_request(
            self.exchange_session,
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.config.redirect_uri,
            },
        )
        return self._grant_from_payload(payload)

    def refresh(self, refresh_token: str) -> TokenGrant:
        payload = self._token_request(
            self.session,
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            },
        )
        return self._grant_from_payload(payload)

    def get_profile(self, access_token: str) -> Dict:
        response = self.session.get(
            f"{self.config.api_base}/me",
            headers=bearer(access_token),
            timeout=self.config.timeout,
        )
        raise_for_spotify_status(response)
        return response.json()


class TokenRefresher:
    """
    Hands out a non-expired Credential for a user, refreshing it on demand.

    Refreshes for one user are serialized: whoever takes the lock second
    re-reads the stored credential and finds it already fresh, so the
    refresh token persisted is always the one from the latest exchange.
    """

    def __init__(
        self,
        credentials: CredentialRepository,
        auth_client: SpotifyAuthClient,
        clock: Callable[[], datetime] = utcnow,
        margin_seconds: int = 0,
    ):
        self.credentials = credentials
        self.auth_client = auth_client
        self.clock = clock
        self.margin_seconds = margin_seconds
        # Entries vanish once no caller holds the lock.
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(user_id, threading.Lock())

    def _load(self, user_id: str) -> Credential:
        credential = self.credentials.get_by_user(user_id)
        if credential is None:
            raise NotConnected()
        return credential

    def ensure_valid_token(self, user_id: str) -> Credential:
        credential = self._load(user_id)
        if not credential.is_expired(self.clock(), self.margin_seconds):
            return credential

        with self._lock_for(user_id):
            credential = self._load(user_id)
            if not credential.is_expired(self.clock(), self.margin_seconds):
                return credential

            log_step(f"Refreshing Spotify access token for user {user_id}...")
            try:
                grant = self.auth_client.refresh(credential.refresh_token)
            except (SpotifyHttpError, requests.RequestException) as exc:
                raise RefreshFailed(f"Failed to refresh Spotify token: {exc}") from exc

            refreshed = self.credentials.replace_tokens(
                user_id,
                access_token=grant.access_token,
                # Spotify only sometimes rotates the refresh token.
                refresh_token=grant.refresh_token or credential.refresh_token,
                expires_at=grant.expires_at,
            )
            log_success("Spotify access token refreshed.")
            return refreshed


class SpotifyConnector:
    """Connect / disconnect a user's Spotify account."""

    def __init__(
        self,
        credentials: CredentialRepository,
        auth_client: SpotifyAuthClient,
    ):
        self.credentials = credentials
        self.auth_client = auth_client

    def auth_url(self, user_id: str) -> str:
        return self.auth_client.build_auth_url(state=user_id)

    def connect(self, user_id: str, code: str, state: str) -> Credential:
        """
        Finish the authorization-code flow started by `auth_url(user_id)`.

        `state` must round-trip unchanged: it is the caller's own id.
        """
        if state != user_id:
            raise InvalidState()

        try:
            grant = self.auth_client.exchange_code(code)
            profile = self.auth_client.get_profile(grant.access_token)
        except (SpotifyHttpError, requests.RequestException) as exc:
            raise ConnectFailed(
                f"Failed to exchange Spotify authorization code: {exc}"
            ) from exc

        credential = Credential(
            user_id=user_id,
            access_token=grant.access_token,
            refresh_token=grant.refresh_token or "",
            expires_at=grant.expires_at,
            remote_user_id=profile["id"],
            remote_display_name=profile.get("display_name"),
        )
        self.credentials.save(credential)
        log_success(f"Spotify account {credential.remote_user_id} connected.")
        return credential

    def disconnect(self, user_id: str) -> bool:
        removed = self.credentials.delete(user_id)
        if removed:
            log_info(f"Spotify disconnected for user {user_id}.")
        else:
            log_warning(f"No Spotify connection to remove for user {user_id}.")
        return removed

    def status(self, user_id: str) -> Dict:
        credential = self.credentials.get_by_user(user_id)
        if credential is None:
            return {
                "connected": False,
                "remote_user_id": None,
                "remote_display_name": None,
                "expires_at": None,
            }
        return {
            "connected": True,
            "remote_user_id": credential.remote_user_id,
            "remote_display_name": credential.remote_display_name,
            "expires_at": credential.expires_at,
        }
