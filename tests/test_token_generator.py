import base64

from app.core.token_generator import (
    REFRESH_SECRET_BYTES,
    FixedSecretGenerator,
    RandomSecretGenerator,
)


def test_random_token_ids_are_unique():
    gen = RandomSecretGenerator()

    ids = {gen.new_token_id() for _ in range(100)}

    assert len(ids) == 100


def test_refresh_secret_is_urlsafe_and_fits_bcrypt():
    gen = RandomSecretGenerator()

    secret = gen.new_refresh_secret()

    assert len(base64.urlsafe_b64decode(secret)) == REFRESH_SECRET_BYTES
    assert len(secret.encode()) <= 72
    assert "+" not in secret and "/" not in secret
    assert secret != gen.new_refresh_secret()


def test_fixed_generator_is_deterministic():
    gen = FixedSecretGenerator()

    assert gen.new_token_id() == gen.new_token_id() == "uuid_string"
    assert gen.new_refresh_secret() == "rand_string"
