"""Public façade for the app.core package.

This module exposes logging helpers, typed errors, and the domain models that
are safe to import from other packages. Callers should import these
cross-cutting concerns from this façade instead of the internal submodules.
"""

from .errors import (
    AlreadyTransferred,
    ConnectFailed,
    InvalidState,
    InvalidSuggestions,
    NotConnected,
    PlaylistNotFound,
    PlaylistTransferError,
    RefreshFailed,
    RemoteCreateFailed,
    Unauthorized,
)
from .logging_config import configure_logging
from .logging_utils import (
    log_error,
    log_info,
    log_progress,
    log_section,
    log_step,
    log_success,
    log_warning,
)
from .models import (
    Credential,
    LocalPlaylist,
    LocalTrack,
    RemotePlaylist,
    SongSuggestion,
    TrackMatch,
    TransferResult,
    utcnow,
)

__all__ = [
    "configure_logging",
    "log_section",
    "log_info",
    "log_step",
    "log_success",
    "log_warning",
    "log_error",
    "log_progress",
    "PlaylistTransferError",
    "Unauthorized",
    "PlaylistNotFound",
    "NotConnected",
    "RefreshFailed",
    "InvalidState",
    "AlreadyTransferred",
    "ConnectFailed",
    "RemoteCreateFailed",
    "InvalidSuggestions",
    "Credential",
    "LocalPlaylist",
    "LocalTrack",
    "SongSuggestion",
    "TrackMatch",
    "RemotePlaylist",
    "TransferResult",
    "utcnow",
]
