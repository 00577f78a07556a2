"""Admin session models - decoded admin token and the session built from it."""

import time
from typing import Optional
from pydantic import BaseModel, Field


class AdminToken(BaseModel):
    """Payload carried by the x-admin-token header."""
    admin_id: str
    user_id: Optional[str] = None
    division_id: Optional[str] = None
    full_name: Optional[str] = None
    exp: int = Field(..., description="Expiry, epoch milliseconds")


class AdminSession(BaseModel):
    """Authenticated admin passed explicitly to every mutation."""
    token: AdminToken
    is_super_admin: bool = False

    @property
    def admin_id(self) -> str:
        return self.token.admin_id

    @property
    def division_id(self) -> Optional[str]:
        return self.token.division_id

    def is_expired(self, now_ms: Optional[int] = None) -> bool:
        """Single source of truth for token expiry."""
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        return self.token.exp < now_ms
