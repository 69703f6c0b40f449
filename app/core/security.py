"""
Refresh-secret hashing & access-token (JWT) codec.

- Refresh secrets are hashed with bcrypt directly (passlib is
  unmaintained and broken with bcrypt>=4.1).  Only the digest is ever
  stored; verification goes through ``bcrypt.checkpw``.
- Access tokens are JWTs carrying user_id, ip, jti, iat and exp, signed
  with a single allow-listed HMAC algorithm.
- Decoding separates expiry from every other failure: structural claim
  checks run before the expiry check, so an expired token with bad
  claims is still reported as invalid, and an expired token with good
  claims hands its claims back to the caller.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable

import bcrypt
from jose import JWTError, jwt
from jose.exceptions import JOSEError, JWTClaimsError

from app.core.errors import AuthError, ErrorKind, TokenExpiredError

# ── Refresh-secret hashing ──────────────────────────────────────────


def hash_token(secret: str, rounds: int | None = None) -> str:
    """Salted bcrypt digest of an opaque refresh secret."""
    salt = bcrypt.gensalt(rounds) if rounds else bcrypt.gensalt()
    return bcrypt.hashpw(secret.encode("utf-8"), salt).decode("utf-8")


def verify_token_hash(digest: str, candidate: str) -> bool:
    """Check ``candidate`` against a stored digest.  Never raises."""
    try:
        return bcrypt.checkpw(candidate.encode("utf-8"), digest.encode("utf-8"))
    except ValueError:
        # Malformed digest (bad salt) or oversized candidate.
        return False


# ── JWT ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    ip: str
    jti: str
    issued_at: int
    expires_at: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "ip": self.ip,
            "jti": self.jti,
            "iat": self.issued_at,
            "exp": self.expires_at,
        }


class TokenCodec:
    """Encode / decode access tokens with one allow-listed algorithm."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS512",
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.clock = clock

    def encode(self, claims: TokenClaims) -> str:
        try:
            return jwt.encode(claims.to_payload(), self.secret_key, algorithm=self.algorithm)
        except JOSEError as exc:
            raise AuthError(ErrorKind.SIGNING_FAILED, "failed to sign access token") from exc

    def decode(self, token: str) -> TokenClaims:
        """
        Verify and parse an access token.

        Raises ``AuthError`` for anything structurally or cryptographically
        wrong and ``TokenExpiredError`` (carrying the claims) when the
        only problem is that ``exp`` has passed.
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise AuthError(ErrorKind.INVALID_TOKEN, "malformed access token") from exc

        alg = header.get("alg")
        if alg != self.algorithm:
            raise AuthError(
                ErrorKind.ALGORITHM_MISMATCH,
                f"unexpected signing method: {alg}",
            )

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTClaimsError as exc:
            raise AuthError(ErrorKind.INVALID_CLAIMS, "access token claims are invalid") from exc
        except JWTError as exc:
            raise AuthError(ErrorKind.INVALID_TOKEN, "access token signature is invalid") from exc

        for required in ("exp", "iat"):
            if required not in payload:
                raise AuthError(
                    ErrorKind.MISSING_REQUIRED_CLAIM,
                    f'token is missing the "{required}" claim',
                )

        claims = self._claims_from_payload(payload)

        if claims.expires_at < self.clock():
            raise TokenExpiredError("access token is expired", claims)

        return claims

    @staticmethod
    def _claims_from_payload(payload: dict[str, Any]) -> TokenClaims:
        user_id = payload.get("user_id")
        if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
            raise AuthError(ErrorKind.INVALID_CLAIMS, "user_id is required")

        ip = payload.get("ip")
        if not isinstance(ip, str) or not ip:
            raise AuthError(ErrorKind.INVALID_CLAIMS, "ip is required")

        try:
            issued_at = int(payload["iat"])
            expires_at = int(payload["exp"])
        except (TypeError, ValueError) as exc:
            raise AuthError(ErrorKind.INVALID_CLAIMS, "iat and exp must be numeric") from exc

        return TokenClaims(
            user_id=user_id,
            ip=ip,
            jti=str(payload.get("jti") or ""),
            issued_at=issued_at,
            expires_at=expires_at,
        )
