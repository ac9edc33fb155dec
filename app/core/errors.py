"""Typed failures raised by the transfer workflow and its collaborators.

Every fatal outcome of a transfer is one of these classes. Non-fatal
outcomes (a track without a match, a rejected batch) are never raised; they
only show up in logs and in the TransferResult counts.
"""


class PlaylistTransferError(Exception):
    """Base class; `status_code` is the HTTP status the API layer answers with."""

    status_code: int = 500
    default_message: str = "Playlist transfer failed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class Unauthorized(PlaylistTransferError):
    status_code = 401
    default_message = "Not authenticated."


class PlaylistNotFound(PlaylistTransferError):
    status_code = 404
    default_message = "Playlist not found."


class NotConnected(PlaylistTransferError):
    status_code = 409
    default_message = (
        "Spotify not connected. Please connect your Spotify account first."
    )


class RefreshFailed(PlaylistTransferError):
    status_code = 401
    default_message = "Failed to refresh Spotify token. Please reconnect Spotify."


class InvalidState(PlaylistTransferError):
    status_code = 400
    default_message = "Invalid state parameter."


class AlreadyTransferred(PlaylistTransferError):
    status_code = 409
    default_message = "Playlist has already been created on Spotify."


class RemoteCreateFailed(PlaylistTransferError):
    status_code = 502
    default_message = "Failed to create Spotify playlist."


class InvalidSuggestions(PlaylistTransferError):
    status_code = 422
    default_message = "No valid songs (name and artist are required)."


class ConnectFailed(PlaylistTransferError):
    status_code = 400
    default_message = "Failed to connect Spotify account."
