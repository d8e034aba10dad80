from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from jose import jwt

from knowledgebase.core.config import Settings
from knowledgebase.core.rate_limit import RateLimiter
from knowledgebase.core.security import create_access_token, decode_access_token


@pytest.fixture
def settings():
    return Settings(_env_file=None, JWT_SECRET_KEY="secret", JWT_AUDIENCE="kb-app", JWT_ISSUER="https://id.example.com")


def test_token_round_trip(settings):
    token = create_access_token({"sub": "user-1", "name": "Jane"}, settings)

    claims = decode_access_token(token, settings)

    assert claims["sub"] == "user-1"
    assert claims["name"] == "Jane"
    assert claims["aud"] == "kb-app"


def test_wrong_audience_is_rejected(settings):
    token = create_access_token({"sub": "user-1", "aud": "other-app"}, settings)
    assert decode_access_token(token, settings) is None


def test_expired_token_is_rejected(settings):
    expired = datetime.now(timezone.utc) - timedelta(minutes=5)
    token = jwt.encode(
        {"sub": "user-1", "exp": expired, "aud": "kb-app", "iss": "https://id.example.com"},
        "secret",
        algorithm="HS256",
    )
    assert decode_access_token(token, settings) is None


def test_token_without_subject_is_rejected(settings):
    token = create_access_token({"name": "nobody"}, settings)
    assert decode_access_token(token, settings) is None


def test_missing_secret_rejects_everything(settings):
    token = create_access_token({"sub": "user-1"}, settings)
    assert decode_access_token(token, settings.model_copy(update={"JWT_SECRET_KEY": ""})) is None


class FakeRedis:
    def __init__(self):
        self.counts = {}
        self.expiries = {}

    def incr(self, key):
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    def expire(self, key, seconds):
        self.expiries[key] = seconds

    def close(self):
        pass


def test_rate_limiter_blocks_after_limit():
    redis = FakeRedis()
    limiter = RateLimiter(client=redis)

    for _ in range(3):
        limiter.check("user-1", "search", limit=3, window=60)
    with pytest.raises(HTTPException) as exc:
        limiter.check("user-1", "search", limit=3, window=60)

    assert exc.value.status_code == 429
    assert redis.expiries == {"rate:search:user-1": 60}
    # Scopes and users are counted separately
    limiter.check("user-2", "search", limit=3, window=60)
    limiter.check("user-1", "upload", limit=3, window=60)


def test_rate_limiter_without_redis_is_a_no_op():
    limiter = RateLimiter()

    assert not limiter.enabled
    for _ in range(100):
        limiter.check("user-1", "search", limit=1)
