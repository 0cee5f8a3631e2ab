import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from fastapi import Request

from discord_bot import DiscordClient, DiscordError

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Missing identity (401) or missing role (403)."""

    def __init__(self, status_code: int, error: str, message: str, user_roles: Optional[List[str]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.message = message
        self.user_roles = user_roles

    @classmethod
    def unauthenticated(cls) -> "AuthError":
        return cls(401, "Authentication required",
                   "Please log in with your account to access this application.")

    @classmethod
    def forbidden(cls, user_roles: List[str]) -> "AuthError":
        return cls(403, "Insufficient permissions",
                   "You do not have the required Discord server roles to access this application.",
                   user_roles)

    def to_dict(self) -> dict:
        body = {"error": self.error, "message": self.message}
        if self.user_roles is not None:
            body["userRoles"] = self.user_roles
        return body


@dataclass
class Caller:
    id: str
    username: str = "Unknown"
    roles: List[str] = field(default_factory=list)


class RoleResolver:
    """Looks up a member's role names in the configured guild."""

    def __init__(self, client: DiscordClient, guild_id: str):
        self.client = client
        self.guild_id = guild_id
        self._role_names: Dict[str, str] = {}

    async def _refresh_role_names(self):
        roles = await self.client.fetch_guild_roles(self.guild_id)
        self._role_names = {role["id"]: role["name"] for role in roles}

    async def member_roles(self, user_id: str) -> Dict[str, str]:
        """Return the member's roles as ``{role_id: role_name}``."""
        member = await self.client.fetch_member(self.guild_id, user_id)
        role_ids = member.get("roles", [])
        if any(role_id not in self._role_names for role_id in role_ids):
            await self._refresh_role_names()
        return {role_id: self._role_names.get(role_id, role_id) for role_id in role_ids}


def has_required_role(roles: Dict[str, str], required: Iterable[str]) -> bool:
    required = set(required)
    if not required:
        return True
    return bool(required.intersection(roles) or required.intersection(roles.values()))


async def require_discord_role(request: Request) -> Caller:
    settings = request.app.state.settings
    user_id = (request.headers.get(settings.identity_header) or "").strip()
    if not user_id:
        raise AuthError.unauthenticated()
    username = request.headers.get(settings.username_header) or "Unknown"

    resolver: Optional[RoleResolver] = request.app.state.role_resolver
    if resolver is None:
        header_roles = request.headers.get(settings.roles_header) or ""
        roles = {role.strip(): role.strip() for role in header_roles.split(",") if role.strip()}
    else:
        try:
            roles = await resolver.member_roles(user_id)
        except DiscordError as e:
            logger.error("Error checking roles for user %s: %s", user_id, e)
            roles = {}

    role_names = list(roles.values())
    if not has_required_role(roles, settings.required_roles):
        logger.info("User %s denied, roles: %s", user_id, role_names)
        raise AuthError.forbidden(role_names)
    return Caller(id=user_id, username=username, roles=role_names)
