from functools import lru_cache
from typing import NoReturn

from fastapi import Header, HTTPException

from app.core import PlaylistTransferError
from app.services import Services, build_services


@lru_cache(maxsize=1)
def get_services() -> Services:
    """Process-wide services; tests swap them via app.dependency_overrides."""
    return build_services()


def get_current_user_id(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> str:
    """
    Stable caller identity, as forwarded by the identity provider.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=401,
            detail={"status": "unauthenticated", "message": "Not authenticated."},
        )
    return x_user_id.strip()


def raise_http(e: PlaylistTransferError) -> NoReturn:
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "status": type(e).__name__,
            "message": e.message,
        },
    )
