import os

import pytest

from log import configure_logging
from settings import DEFAULT_REQUIRED_ROLES, Settings

ENV_VARS = (
    "DISCORD_BOT_TOKEN",
    "DISCORD_CHANNEL_ID",
    "DISCORD_GUILD_ID",
    "REQUIRED_DISCORD_ROLES",
    "DATABASE_URL",
    "SESSION_SECRET_KEY",
    "LOG_LEVEL",
    "IDENTITY_HEADER",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # load_dotenv writes straight into os.environ
    monkeypatch.setattr(os, "environ", dict(os.environ))
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def test_defaults(clean_env):
    settings = Settings.from_env()
    assert settings.required_roles == DEFAULT_REQUIRED_ROLES
    assert settings.identity_header == "X-User-Id"
    assert not settings.notifications_enabled
    assert not settings.role_checks_enabled


def test_environment_overrides(clean_env):
    clean_env.setenv("DISCORD_BOT_TOKEN", "token")
    clean_env.setenv("DISCORD_CHANNEL_ID", "42")
    clean_env.setenv("DISCORD_GUILD_ID", "555")
    clean_env.setenv("REQUIRED_DISCORD_ROLES", " Deputy , ,Admin")
    clean_env.setenv("LOG_LEVEL", "debug")
    settings = Settings.from_env()
    assert settings.required_roles == ["Deputy", "Admin"]
    assert settings.notifications_enabled
    assert settings.role_checks_enabled
    assert settings.log_level == "debug"


def test_env_file(clean_env, tmp_path):
    env_file = tmp_path / "reports.env"
    env_file.write_text("DISCORD_CHANNEL_ID=777\nREQUIRED_DISCORD_ROLES=\n")
    settings = Settings.from_env(str(env_file))
    assert settings.discord_channel_id == "777"
    assert settings.required_roles == []


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        configure_logging("chatty")

