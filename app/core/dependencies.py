"""
FastAPI dependency wiring for the auth core.

``get_auth_service`` assembles an ``AuthService`` per request from the
request's DB session and the application settings.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.security import TokenCodec
from app.services.auth_service import AuthService
from app.services.email_service import EmailNotifier, Notifier
from app.services.session_service import SqlSessionStore
from app.services.user_service import SqlUserStore


def get_token_codec() -> TokenCodec:
    return TokenCodec(settings.SECRET_KEY, settings.JWT_ALGORITHM)


def get_notifier() -> Notifier:
    return EmailNotifier()


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    notifier: Notifier = Depends(get_notifier),
) -> AuthService:
    return AuthService(
        sessions=SqlSessionStore(db),
        users=SqlUserStore(db),
        notifier=notifier,
        codec=codec,
        access_token_lifetime=settings.ACCESS_TOKEN_LIFETIME,
        refresh_token_lifetime=settings.REFRESH_TOKEN_LIFETIME,
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
        timeout=settings.SESSION_OPERATION_TIMEOUT_SECONDS,
    )
