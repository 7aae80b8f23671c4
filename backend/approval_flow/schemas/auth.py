from __future__ import annotations

from pydantic import BaseModel


class AuthContext(BaseModel):
    """Authenticated actor, as asserted by the upstream identity provider."""

    email: str
