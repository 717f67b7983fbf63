"""Configuration settings behaviour tests."""

from __future__ import annotations

import pytest

from playqueue.config import Settings


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.external_subtitle_label == "External"
    assert settings.skip_virtual_episodes is False
    assert settings.jellyfin_retry_limit == 2


def test_jellyfin_base_url_has_no_trailing_slash() -> None:
    settings = Settings(_env_file=None, JELLYFIN_URL="https://media.example.com/jellyfin/")

    assert settings.jellyfin_base_url == "https://media.example.com/jellyfin"


def test_blank_subtitle_label_falls_back() -> None:
    settings = Settings(_env_file=None, EXTERNAL_SUBTITLE_LABEL="   ")

    assert settings.external_subtitle_label == "External"


def test_skip_virtual_episodes_parses_booleans() -> None:
    settings = Settings(_env_file=None, SKIP_VIRTUAL_EPISODES="true")

    assert settings.skip_virtual_episodes is True


def test_retry_limit_bounds() -> None:
    with pytest.raises(ValueError):
        Settings(_env_file=None, JELLYFIN_RETRY_LIMIT=50)
