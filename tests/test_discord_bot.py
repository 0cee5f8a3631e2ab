import asyncio
import json

import httpx
import pytest

from discord_bot import DiscordClient, DiscordError, ReportNotifier
from records import ArrestRecord, CitationRecord


def make_client(handler):
    return DiscordClient("test-token", "https://discord.test/api", transport=httpx.MockTransport(handler))


def run(coro):
    return asyncio.run(coro)


def test_send_message_posts_json():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"id": "1"})

    async def scenario():
        client = make_client(handler)
        try:
            return await client.send_message("42", "hello")
        finally:
            await client.close()

    assert run(scenario()) == {"id": "1"}
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/api/channels/42/messages"
    assert request.headers["Authorization"] == "Bot test-token"
    assert json.loads(request.content) == {"content": "hello"}


def test_send_message_with_attachment_is_multipart():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"id": "2"})

    async def scenario():
        client = make_client(handler)
        try:
            await client.send_message("42", "report", attachment=("mugshot.png", b"\x89PNG", "image/png"))
        finally:
            await client.close()

    run(scenario())
    request = seen[0]
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    body = request.content
    assert b'name="payload_json"' in body
    assert b'name="files[0]"; filename="mugshot.png"' in body
    assert b"\x89PNG" in body


def test_error_status_raises_discord_error():
    def handler(request):
        return httpx.Response(403, json={"message": "Missing Access"})

    async def scenario():
        client = make_client(handler)
        try:
            await client.fetch_member("1", "2")
        finally:
            await client.close()

    with pytest.raises(DiscordError) as exc_info:
        run(scenario())
    assert exc_info.value.status_code == 403


def test_transport_failure_raises_discord_error():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    async def scenario():
        client = make_client(handler)
        try:
            await client.fetch_guild_roles("1")
        finally:
            await client.close()

    with pytest.raises(DiscordError):
        run(scenario())


def test_notifier_sends_citation(citation_payload):
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"id": "3"})

    async def scenario():
        client = make_client(handler)
        try:
            return await ReportNotifier(client, "42").deliver_citation(CitationRecord.model_validate(citation_payload))
        finally:
            await client.close()

    assert run(scenario()) is True
    assert seen[0]["content"].startswith("Ping User Receiving Ticket")


def test_notifier_attaches_mugshot_only_without_description(arrest_payload):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"id": "4"})

    del arrest_payload["description"]
    arrest_payload["mugshotBase64"] = "data:image/png;base64,iVBORw0KGgo="

    async def scenario():
        client = make_client(handler)
        try:
            await ReportNotifier(client, "42").send_arrest(ArrestRecord.model_validate(arrest_payload))
        finally:
            await client.close()

    run(scenario())
    assert seen[0].headers["Content-Type"].startswith("multipart/form-data")
    assert b"See attached mugshot" in seen[0].content


def test_deliver_logs_and_swallows_failures(arrest_payload, caplog):
    def handler(request):
        return httpx.Response(500, text="boom")

    async def scenario():
        client = make_client(handler)
        try:
            return await ReportNotifier(client, "42").deliver_arrest(ArrestRecord.model_validate(arrest_payload))
        finally:
            await client.close()

    assert run(scenario()) is False
    assert "Failed to send arrest report to Discord" in caplog.text
