"""
Pydantic schemas for request / response serialization.

Kept in a single file for now — split per-domain when it grows.
Schemas are deliberately decoupled from SQLAlchemy models so the
API surface can evolve independently of the DB layer.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr


# ── Auth ─────────────────────────────────────────────────────────────
class TokenPairResponse(BaseModel):
    access_token: str
    refresh_token: str


class RefreshTokenRequest(BaseModel):
    refresh_token: str


# ── User ─────────────────────────────────────────────────────────────
class CreateUserRequest(BaseModel):
    email: EmailStr


class UserOut(BaseModel):
    id: int
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Session ──────────────────────────────────────────────────────────
class SessionOut(BaseModel):
    """Stored session without its refresh hash."""

    id: int
    user_id: int
    access_token_id: str
    ip: str
    created_at: int
    version: int

    model_config = {"from_attributes": True}


# ── Generic ──────────────────────────────────────────────────────────
class ErrorResponse(BaseModel):
    error: str
    kind: str | None = None
