"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from sessionauth.core.config import MIN_SECRET_LENGTH, Settings

ACCESS_SECRET = "config-access-secret-" + "a" * 40
REFRESH_SECRET = "config-refresh-secret-" + "r" * 40

_TEST_ENV = (
    "JWT_ACCESS_SECRET_KEY",
    "JWT_REFRESH_SECRET_KEY",
    "COOKIE_SECURE",
    "PASSWORD_HASH_TIME_COST",
    "PASSWORD_HASH_MEMORY_COST",
    "PASSWORD_HASH_PARALLELISM",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove the variables the test suite sets globally."""
    for name in _TEST_ENV:
        monkeypatch.delenv(name, raising=False)


def test_defaults(clean_env):
    config = Settings(_env_file=None)

    assert config.jwt_algorithm == "HS512"
    assert config.jwt_access_token_expire_minutes == 15
    assert config.jwt_refresh_token_expire_days == 7
    assert config.session_renewal_threshold_minutes == 20
    assert config.store_timeout_seconds == 10.0
    assert config.password_hash_time_cost == 3
    assert config.password_hash_memory_cost == 65536
    assert config.password_hash_parallelism == 4
    assert config.cookie_secure is True


def test_generated_secrets_are_distinct_and_flagged(clean_env):
    config = Settings(_env_file=None)

    assert len(config.jwt_access_secret_key) >= MIN_SECRET_LENGTH
    assert config.jwt_access_secret_key != config.jwt_refresh_secret_key
    warnings = config.check_security_configuration()
    assert any("JWT_ACCESS_SECRET_KEY" in w for w in warnings)
    assert any("JWT_REFRESH_SECRET_KEY" in w for w in warnings)


def test_secure_configuration_has_no_warnings(clean_env):
    config = Settings(
        _env_file=None,
        jwt_access_secret_key=ACCESS_SECRET,
        jwt_refresh_secret_key=REFRESH_SECRET,
    )
    assert config.check_security_configuration() == []


def test_insecure_transport_is_flagged(clean_env):
    config = Settings(
        _env_file=None,
        jwt_access_secret_key=ACCESS_SECRET,
        jwt_refresh_secret_key=REFRESH_SECRET,
        cookie_secure=False,
        debug=True,
    )
    warnings = config.check_security_configuration()
    assert any("COOKIE_SECURE" in w for w in warnings)
    assert any("DEBUG" in w for w in warnings)


def test_secrets_from_environment(clean_env, monkeypatch):
    monkeypatch.setenv("JWT_ACCESS_SECRET_KEY", ACCESS_SECRET)
    monkeypatch.setenv("JWT_REFRESH_SECRET_KEY", REFRESH_SECRET)

    config = Settings(_env_file=None)
    assert config.jwt_access_secret_key == ACCESS_SECRET
    assert config.jwt_refresh_secret_key == REFRESH_SECRET


def test_short_secret_rejected(clean_env):
    with pytest.raises(ValidationError):
        Settings(
            _env_file=None,
            jwt_access_secret_key="x" * (MIN_SECRET_LENGTH - 1),
            jwt_refresh_secret_key=REFRESH_SECRET,
        )


def test_identical_secrets_rejected(clean_env):
    with pytest.raises(ValidationError):
        Settings(
            _env_file=None,
            jwt_access_secret_key=ACCESS_SECRET,
            jwt_refresh_secret_key=ACCESS_SECRET,
        )


def test_only_hs512_is_accepted(clean_env):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, jwt_algorithm="HS256")


@pytest.mark.parametrize("value", ["0", "-5"])
def test_token_lifetimes_must_be_positive(clean_env, value):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, jwt_access_token_expire_minutes=int(value))


def test_cors_origins_list(clean_env):
    config = Settings(
        _env_file=None, cors_origins=" https://a.example, ,https://b.example "
    )
    assert config.cors_origins_list == ["https://a.example", "https://b.example"]
