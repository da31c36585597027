"""Tests for token verification and database URL handling."""

import pytest

from app.core.exceptions import AuthenticationError
from app.core.security import verify_access_token
from app.db.session import async_database_url
from tests.conftest import make_token


class TestVerifyAccessToken:
    def test_valid_token(self):
        data = verify_access_token(make_token("user-1", email="a@example.com"))
        assert data.user_id == "user-1"
        assert data.email == "a@example.com"

    def test_expired(self):
        with pytest.raises(AuthenticationError, match="expired"):
            verify_access_token(make_token("user-1", expires_in=-60))

    def test_wrong_audience(self):
        with pytest.raises(AuthenticationError):
            verify_access_token(make_token("user-1", aud="someone-else"))

    def test_missing_subject(self):
        with pytest.raises(AuthenticationError, match="subject"):
            verify_access_token(make_token(""))

    def test_garbage(self):
        with pytest.raises(AuthenticationError):
            verify_access_token("not-a-jwt")


class TestAsyncDatabaseUrl:
    @pytest.mark.parametrize(
        "url",
        ["postgres://u:p@db:5432/spark", "postgresql://u:p@db:5432/spark"],
    )
    def test_postgres_uses_asyncpg(self, url):
        assert async_database_url(url) == "postgresql+asyncpg://u:p@db:5432/spark"

    def test_other_urls_untouched(self):
        url = "sqlite+aiosqlite:///./spark.db"
        assert async_database_url(url) == url
        assert async_database_url("postgresql+asyncpg://db/x") == "postgresql+asyncpg://db/x"
