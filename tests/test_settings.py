from __future__ import annotations

from pathlib import Path

import pytest

from config.settings import Settings
from domain.errors import ConfigError

TOML = """
imap_server = "imap.example.test"
imap_port = 993
imap_username = "user@example.test"
imap_password = "secret"
discord_webhook_url = "https://discord.example.test/api/webhooks/1/token"
ignored_senders = ["spam@x.com"]
"""


def write_config(tmp_path: Path, text: str = TOML) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_from_toml(tmp_path: Path) -> None:
    settings = Settings.load(write_config(tmp_path), environ={})

    assert settings.imap_server == "imap.example.test"
    assert settings.imap_port == 993
    assert settings.ignored_senders == ("spam@x.com",)
    assert settings.ignored_subjects == ()
    assert settings.imap_folder == "INBOX"
    assert settings.poll_interval == 5
    assert settings.reconnect_delay == 10
    assert settings.delete_ignored is True


def test_environment_overrides_file(tmp_path: Path) -> None:
    env = {"IMAP_PORT": "1993", "IGNORED_SUBJECTS": "Weekly Deals, Promo ", "DELETE_IGNORED": "false"}

    settings = Settings.load(write_config(tmp_path), environ=env)

    assert settings.imap_port == 1993
    assert settings.ignored_subjects == ("Weekly Deals", "Promo")
    assert settings.delete_ignored is False


def test_missing_required_fields(tmp_path: Path) -> None:
    path = write_config(tmp_path, 'imap_server = "imap.example.test"\n')

    with pytest.raises(ConfigError) as info:
        Settings.load(path, environ={})

    assert "discord_webhook_url" in str(info.value)


def test_missing_explicit_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        Settings.load(tmp_path / "nope.toml", environ={})


def test_invalid_toml(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        Settings.load(write_config(tmp_path, "imap_server = "), environ={})


def test_invalid_port(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        Settings.load(write_config(tmp_path), environ={"IMAP_PORT": "abc"})


def test_non_string_ignore_list(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        Settings.load(write_config(tmp_path, TOML + "ignored_subjects = [1, 2]\n"), environ={})


def test_masked_hides_secrets(tmp_path: Path) -> None:
    settings = Settings.load(write_config(tmp_path), environ={})

    masked = str(settings.masked())

    assert "secret" not in masked
    assert "token" not in masked


def test_empty_pattern_in_toml_list_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigError) as info:
        Settings.load(write_config(tmp_path, TOML.replace('["spam@x.com"]', '["spam@x.com", ""]')), environ={})

    assert "ignored_senders" in str(info.value)


def test_empty_pattern_in_env_list_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        Settings.load(write_config(tmp_path), environ={"IGNORED_SUBJECTS": "Weekly,,Promo"})


def test_toml_patterns_are_kept_verbatim(tmp_path: Path) -> None:
    settings = Settings.load(write_config(tmp_path, TOML.replace('["spam@x.com"]', '[" Deals "]')), environ={})

    assert settings.ignored_senders == (" Deals ",)
