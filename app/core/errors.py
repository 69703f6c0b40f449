"""
Error taxonomy for token issuance and rotation.

Every failure the auth core can produce is an ``AuthError`` tagged with
an ``ErrorKind``.  Callers match on ``kind`` rather than on messages;
the underlying exception (if any) is kept as ``__cause__`` via
``raise ... from exc`` and exposed as ``cause``.
"""

import enum
from typing import Any


class ErrorKind(str, enum.Enum):
    # Access-token encoding / decoding
    SIGNING_FAILED = "signing_failed"
    ALGORITHM_MISMATCH = "algorithm_mismatch"
    MISSING_REQUIRED_CLAIM = "missing_required_claim"
    INVALID_CLAIMS = "invalid_claims"
    INVALID_TOKEN = "invalid_token"
    EXPIRED = "expired"

    # Rotation
    VALIDATION_FAILED = "validation_failed"
    SESSION_NOT_EXISTS = "session_not_exists"
    CONFLICT = "conflict"

    # Collaborators
    INTERNAL = "internal"
    NOTIFICATION_FAILED = "notification_failed"
    TIMEOUT = "timeout"


# Kinds that mean "the presented credentials are not acceptable".
_VALIDATION_KINDS = frozenset(
    {
        ErrorKind.ALGORITHM_MISMATCH,
        ErrorKind.MISSING_REQUIRED_CLAIM,
        ErrorKind.INVALID_CLAIMS,
        ErrorKind.INVALID_TOKEN,
        ErrorKind.EXPIRED,
        ErrorKind.VALIDATION_FAILED,
    }
)


class AuthError(Exception):
    """Base error raised by the token codec and the session rotator."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__

    @property
    def is_validation_error(self) -> bool:
        return self.kind in _VALIDATION_KINDS

    def __str__(self) -> str:
        if self.__cause__ is not None:
            return f"{self.message}: {self.__cause__}"
        return self.message

    def __repr__(self) -> str:
        return f"<AuthError kind={self.kind.value} message={self.message!r}>"


class TokenExpiredError(AuthError):
    """
    The access token is structurally valid and correctly signed but past
    its ``exp``.  The decoded claims are attached so a refresh can
    proceed past expiry alone.
    """

    def __init__(self, message: str, claims: Any) -> None:
        super().__init__(ErrorKind.EXPIRED, message)
        self.claims = claims
