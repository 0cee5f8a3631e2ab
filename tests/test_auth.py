import asyncio

import httpx

from auth import AuthError, RoleResolver, has_required_role
from discord_bot import DiscordClient


def test_has_required_role_matches_names_or_ids():
    roles = {"901": "Officer", "902": "Civilian"}
    assert has_required_role(roles, ["Officer", "Admin"])
    assert has_required_role(roles, ["902"])
    assert not has_required_role(roles, ["Admin"])
    assert not has_required_role({}, ["Admin"])


def test_empty_allow_list_allows_everyone():
    assert has_required_role({}, [])


def test_auth_error_bodies():
    assert AuthError.unauthenticated().to_dict() == {
        "error": "Authentication required",
        "message": "Please log in with your account to access this application.",
    }
    forbidden = AuthError.forbidden(["Civilian"])
    assert forbidden.status_code == 403
    assert forbidden.to_dict()["userRoles"] == ["Civilian"]


def test_role_resolver_maps_role_ids_to_names():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        if request.url.path.endswith("/roles"):
            return httpx.Response(200, json=[{"id": "901", "name": "Officer"}, {"id": "902", "name": "Civilian"}])
        return httpx.Response(200, json={"roles": ["901"]})

    async def scenario():
        client = DiscordClient("token", "https://discord.test/api", transport=httpx.MockTransport(handler))
        resolver = RoleResolver(client, "555")
        try:
            first = await resolver.member_roles("111")
            second = await resolver.member_roles("111")
        finally:
            await client.close()
        return first, second

    first, second = asyncio.run(scenario())
    assert first == second == {"901": "Officer"}
    # guild roles are fetched once and reused
    assert calls.count("/api/guilds/555/roles") == 1
    assert calls.count("/api/guilds/555/members/111") == 2
