"""
Tests for application settings.
"""

import pytest
from pydantic import ValidationError

from user_search.config import Settings


class TestSettings:
    """Test Settings defaults and validation."""

    def test_defaults(self, monkeypatch):
        for name in ("USER_API_URL", "REQUEST_TIMEOUT", "PAGE_SIZE", "KEY_VALUE_BACKEND"):
            monkeypatch.delenv(name, raising=False)

        config = Settings(_env_file=None)

        assert config.USER_API_URL == "https://slack-users.herokuapp.com/search"
        assert config.REQUEST_TIMEOUT == 30.0
        assert config.PAGE_SIZE == 20
        assert config.MAX_PAGE_SIZE == 20000
        assert config.KEY_VALUE_BACKEND == "file"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("USER_API_URL", "http://localhost:9000/search/")
        monkeypatch.setenv("PAGE_SIZE", "50")
        monkeypatch.setenv("KEY_VALUE_BACKEND", "redis")

        config = Settings(_env_file=None)

        assert config.USER_API_URL == "http://localhost:9000/search"
        assert config.PAGE_SIZE == 50
        assert config.KEY_VALUE_BACKEND == "redis"

    def test_rejects_non_http_url(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, USER_API_URL="ftp://example.com/search")

    def test_rejects_unknown_backend(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, KEY_VALUE_BACKEND="sqlite")

    def test_rejects_non_positive_page_size(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, PAGE_SIZE=0)
