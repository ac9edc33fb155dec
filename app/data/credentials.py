from datetime import datetime
from typing import Optional

from app.core import Credential, NotConnected

from .store import DocumentStore

COLLECTION = "credentials"


class CredentialRepository:
    """
    Token store: at most one Credential per user, keyed by user id.

    Each method is a single store operation, so a token refresh never leaves
    a half-updated credential visible to other readers.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    def get_by_user(self, user_id: str) -> Optional[Credential]:
        doc = self.store.get(COLLECTION, user_id)
        if doc is None:
            return None
        doc.pop("id", None)
        return Credential(**doc)

    def save(self, credential: Credential) -> Credential:
        """Create the user's credential, or replace it on re-connect."""
        self.store.put(
            COLLECTION,
            credential.user_id,
            credential.model_dump(mode="json"),
        )
        return credential

    def replace_tokens(
        self,
        user_id: str,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
    ) -> Credential:
        """Swap in refreshed tokens; NotConnected if the user disconnected meanwhile."""
        try:
            doc = self.store.patch(
                COLLECTION,
                user_id,
                {
                    "access_token": access_token,
                    "refresh_token": refresh_token,
                    "expires_at": expires_at.isoformat(),
                },
            )
        except KeyError:
            raise NotConnected() from None
        doc.pop("id", None)
        return Credential(**doc)

    def delete(self, user_id: str) -> bool:
        return self.store.delete(COLLECTION, user_id)
