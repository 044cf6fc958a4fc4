from __future__ import annotations

import pytest

from client import api_credentials, build_client
from core.errors import ConfigError


def test_credentials_are_parsed(monkeypatch) -> None:
    monkeypatch.setenv("API_ID", " 12345 ")
    monkeypatch.setenv("API_HASH", "abcdef")

    assert api_credentials() == (12345, "abcdef")


def test_missing_credentials_raise_config_error(monkeypatch) -> None:
    monkeypatch.delenv("API_ID", raising=False)
    monkeypatch.setenv("API_HASH", "abcdef")

    with pytest.raises(ConfigError, match="API_ID and API_HASH"):
        build_client()


def test_non_numeric_api_id_raises_config_error(monkeypatch) -> None:
    monkeypatch.setenv("API_ID", "my-app")
    monkeypatch.setenv("API_HASH", "abcdef")

    with pytest.raises(ConfigError, match="numeric"):
        build_client()
