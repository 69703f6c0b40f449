"""
Token identifier & refresh-secret generation.

The service takes a ``SecretGenerator`` at construction time.  Production
wiring uses ``RandomSecretGenerator``; tests that need reproducible
values pass a ``FixedSecretGenerator`` explicitly.
"""

import base64
import secrets
import uuid
from typing import Protocol

# 52 bytes -> 72 url-safe base64 chars, which is exactly bcrypt's input limit.
REFRESH_SECRET_BYTES = 52


class SecretGenerator(Protocol):
    def new_token_id(self) -> str: ...

    def new_refresh_secret(self) -> str: ...


class RandomSecretGenerator:
    def __init__(self, nbytes: int = REFRESH_SECRET_BYTES) -> None:
        self.nbytes = nbytes

    def new_token_id(self) -> str:
        return str(uuid.uuid4())

    def new_refresh_secret(self) -> str:
        return base64.urlsafe_b64encode(secrets.token_bytes(self.nbytes)).decode("ascii")


class FixedSecretGenerator:
    """Always returns the same strings.  For tests only."""

    def __init__(self, token_id: str = "uuid_string", refresh_secret: str = "rand_string") -> None:
        self.token_id = token_id
        self.refresh_secret = refresh_secret

    def new_token_id(self) -> str:
        return self.token_id

    def new_refresh_secret(self) -> str:
        return self.refresh_secret
