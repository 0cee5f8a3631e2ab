import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DISCORD_API_BASE = "https://discord.com/api"

DEFAULT_REQUIRED_ROLES = ["Law Enforcement", "Officer", "Admin"]


class Settings(BaseModel):
    """Process configuration, read from the environment (and ``.env``)."""

    discord_bot_token: Optional[str] = None
    discord_channel_id: Optional[str] = None
    discord_guild_id: Optional[str] = None
    discord_api_base: str = DISCORD_API_BASE
    required_roles: List[str] = Field(default_factory=lambda: list(DEFAULT_REQUIRED_ROLES))

    database_url: str = "sqlite+aiosqlite:///./citations.db"
    session_secret_key: str = "your_secret_key_here"
    log_level: str = "INFO"

    identity_header: str = "X-User-Id"
    username_header: str = "X-User-Name"
    roles_header: str = "X-User-Roles"

    @property
    def notifications_enabled(self) -> bool:
        return bool(self.discord_bot_token and self.discord_channel_id)

    @property
    def role_checks_enabled(self) -> bool:
        return bool(self.discord_bot_token and self.discord_guild_id)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        load_dotenv(env_file)
        values = {
            "discord_bot_token": os.getenv("DISCORD_BOT_TOKEN"),
            "discord_channel_id": os.getenv("DISCORD_CHANNEL_ID"),
            "discord_guild_id": os.getenv("DISCORD_GUILD_ID"),
            "database_url": os.getenv("DATABASE_URL"),
            "session_secret_key": os.getenv("SESSION_SECRET_KEY"),
            "log_level": os.getenv("LOG_LEVEL"),
            "identity_header": os.getenv("IDENTITY_HEADER"),
        }
        roles = os.getenv("REQUIRED_DISCORD_ROLES")
        if roles is not None:
            values["required_roles"] = [role.strip() for role in roles.split(",") if role.strip()]
        return cls(**{key: value for key, value in values.items() if value is not None})
