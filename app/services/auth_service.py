"""
Authentication service — session-bound token issuance & rotation.

Handles:
- Issuing an access/refresh pair for a user (create or rotate the
  user's single session row)
- Refreshing a pair: the presented access token and refresh secret must
  both belong to the *current* generation of the stored session

Replay rules:
- Every issuance replaces the whole generation (jti, refresh hash, ip,
  created_at) and bumps ``version`` through compare-and-update.
- A refresh checks the refresh secret against the stored hash AND the
  access token's jti against the stored jti, so an old pair, or halves
  of two different generations, never refresh.
- ``iat`` of the access token must equal the stored ``created_at``;
  the refresh lifetime counts from that instant.
- An expired access token is accepted for refresh; any other decode
  failure is not.

Concurrency: no locks.  The loser of a compare-and-update race gets
``ErrorKind.CONFLICT`` and its freshly generated tokens are discarded.
Nothing here retries.
"""

import asyncio
import ipaddress
import logging
import time
from datetime import timedelta
from typing import Any, Awaitable, Callable, NamedTuple

from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import AuthError, ErrorKind, TokenExpiredError
from app.core.security import TokenClaims, TokenCodec, hash_token, verify_token_hash
from app.core.token_generator import RandomSecretGenerator, SecretGenerator
from app.services.email_service import Notifier
from app.services.session_service import SessionRecord, SessionStore
from app.services.user_service import UserLookup

logger = logging.getLogger(__name__)

DEFAULT_ACCESS_TOKEN_LIFETIME = timedelta(minutes=30)
DEFAULT_REFRESH_TOKEN_LIFETIME = timedelta(days=30)


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


# ── Helpers ──────────────────────────────────────────────────────────

def same_ip(a: str, b: str) -> bool:
    """Compare two client addresses, normalising textual IP forms."""
    try:
        return ipaddress.ip_address(a) == ipaddress.ip_address(b)
    except ValueError:
        return a == b


class AuthService:
    def __init__(
        self,
        sessions: SessionStore,
        users: UserLookup,
        notifier: Notifier,
        codec: TokenCodec,
        *,
        generator: SecretGenerator | None = None,
        access_token_lifetime: timedelta = DEFAULT_ACCESS_TOKEN_LIFETIME,
        refresh_token_lifetime: timedelta = DEFAULT_REFRESH_TOKEN_LIFETIME,
        bcrypt_rounds: int | None = None,
        timeout: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.sessions = sessions
        self.users = users
        self.notifier = notifier
        self.codec = codec
        self.generator = generator or RandomSecretGenerator()
        self.access_token_lifetime = access_token_lifetime
        self.refresh_token_lifetime = refresh_token_lifetime
        self.bcrypt_rounds = bcrypt_rounds
        self.timeout = timeout
        self.clock = clock

    # ── Public operations ────────────────────────────────────────────

    async def create_session(self, user_id: int, ip: str) -> TokenPair:
        """
        Issue a new access/refresh pair for ``user_id`` and make it the
        current generation of the user's session.

        The caller is responsible for having authenticated ``user_id``;
        no existence check is made here.
        """
        return await self._with_deadline(self._create_session(user_id, ip))

    async def refresh_session(
        self,
        access_token: str,
        refresh_token: str,
        observed_ip: str,
    ) -> TokenPair:
        """
        Exchange the current generation's pair for a new one.

        ``observed_ip`` is the address the refresh request came from; if
        it differs from the IP the access token was minted for, the user
        is emailed before the new pair is issued.
        """
        return await self._with_deadline(
            self._refresh_session(access_token, refresh_token, observed_ip)
        )

    # ── Internals ────────────────────────────────────────────────────

    async def _with_deadline(self, operation: Awaitable[Any]) -> Any:
        if self.timeout is None:
            return await operation
        try:
            return await asyncio.wait_for(operation, timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Session operation timed out after %.2fs", self.timeout)
            raise AuthError(ErrorKind.TIMEOUT, "session operation timed out") from exc

    async def _create_session(self, user_id: int, ip: str) -> TokenPair:
        iat = int(self.clock())
        jti = self.generator.new_token_id()

        access_token = self.codec.encode(
            TokenClaims(
                user_id=user_id,
                ip=ip,
                jti=jti,
                issued_at=iat,
                expires_at=iat + int(self.access_token_lifetime.total_seconds()),
            )
        )

        try:
            refresh_token = self.generator.new_refresh_secret()
            refresh_hash = await asyncio.to_thread(hash_token, refresh_token, self.bcrypt_rounds)
        except (OSError, ValueError) as exc:
            raise AuthError(ErrorKind.INTERNAL, "failed to create refresh token") from exc
        logger.debug("Tokens created for user %s", user_id)

        try:
            existing = await self.sessions.get_by_user_id(user_id)
            if existing is None:
                created = await self.sessions.create(
                    SessionRecord(
                        user_id=user_id,
                        access_token_id=jti,
                        refresh_token_hash=refresh_hash,
                        ip=ip,
                        created_at=iat,
                    )
                )
                logger.info("Session %s created for user %s", created.id, user_id)
                return TokenPair(access_token, refresh_token)

            updated = await self.sessions.compare_and_update(
                existing.id,
                existing.version,
                access_token_id=jti,
                refresh_token_hash=refresh_hash,
                ip=ip,
                created_at=iat,
            )
        except SQLAlchemyError as exc:
            logger.error("Failed to store session for user %s: %s", user_id, exc)
            raise AuthError(ErrorKind.INTERNAL, "failed to store session") from exc

        if updated is None:
            logger.warning(
                "Session %s of user %s was rotated concurrently (expected version %s)",
                existing.id, user_id, existing.version,
            )
            raise AuthError(ErrorKind.CONFLICT, "session was modified concurrently")

        logger.info(
            "Session %s of user %s rotated to version %s",
            updated.id, user_id, updated.version,
        )
        return TokenPair(access_token, refresh_token)

    async def _refresh_session(
        self,
        access_token: str,
        refresh_token: str,
        observed_ip: str,
    ) -> TokenPair:
        try:
            claims = self.codec.decode(access_token)
        except TokenExpiredError as exc:
            claims = exc.claims
            logger.debug("Access token of user %s is expired, refreshing anyway", claims.user_id)
        except AuthError as exc:
            logger.warning("Failed to verify access token: %s", exc)
            raise

        try:
            stored = await self.sessions.get_by_user_id(claims.user_id)
        except SQLAlchemyError as exc:
            logger.error("Failed to load session of user %s: %s", claims.user_id, exc)
            raise AuthError(ErrorKind.INTERNAL, "failed to load session") from exc
        if stored is None:
            logger.warning("Refresh for user %s without a session", claims.user_id)
            raise AuthError(ErrorKind.SESSION_NOT_EXISTS, "session not exists")

        await self._check_generation(claims, refresh_token, stored)

        if not same_ip(claims.ip, observed_ip):
            await self._notify_new_ip(claims, observed_ip)

        return await self._create_session(claims.user_id, claims.ip)

    async def _check_generation(self, claims: TokenClaims, refresh_token: str, stored: SessionRecord) -> None:
        if not await asyncio.to_thread(verify_token_hash, stored.refresh_token_hash, refresh_token):
            logger.warning("Refresh secret mismatch for user %s", claims.user_id)
            raise AuthError(
                ErrorKind.VALIDATION_FAILED,
                "refresh secret does not match current generation",
            )
        if claims.jti != stored.access_token_id:
            logger.warning("Stale access token (jti mismatch) for user %s", claims.user_id)
            raise AuthError(
                ErrorKind.VALIDATION_FAILED,
                "access token is not from the current generation",
            )

        if claims.issued_at != stored.created_at:
            logger.warning("Issued-at mismatch for user %s", claims.user_id)
            raise AuthError(
                ErrorKind.VALIDATION_FAILED,
                "different creation time of access and refresh token",
            )
        refresh_expires_at = stored.created_at + int(self.refresh_token_lifetime.total_seconds())
        if refresh_expires_at < self.clock():
            logger.info("Refresh token of user %s is expired", claims.user_id)
            raise AuthError(ErrorKind.EXPIRED, "refresh token is expired")

    async def _notify_new_ip(self, claims: TokenClaims, observed_ip: str) -> None:
        logger.warning(
            "Login from new IP address for user %s: old[%s], new[%s]",
            claims.user_id, claims.ip, observed_ip,
        )
        try:
            user = await self.users.get_by_id(claims.user_id)
        except SQLAlchemyError as exc:
            raise AuthError(ErrorKind.INTERNAL, "failed to load user") from exc
        if user is None:
            raise AuthError(ErrorKind.INTERNAL, f"user {claims.user_id} not found")

        try:
            await self.notifier.send_login_from_new_ip(claims.ip, user.email)
        except Exception as exc:
            raise AuthError(
                ErrorKind.NOTIFICATION_FAILED,
                "failed to deliver new IP notice",
            ) from exc
