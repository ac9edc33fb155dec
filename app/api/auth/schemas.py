from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class AuthUrlResponse(BaseModel):
    auth_url: str


class ExchangeRequest(BaseModel):
    code: str
    state: str


class ConnectionStatus(BaseModel):
    connected: bool
    remote_user_id: Optional[str] = None
    remote_display_name: Optional[str] = None
    expires_at: Optional[datetime] = None
