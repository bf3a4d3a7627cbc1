"""Tests for the JSON gateway channel, using httpx.MockTransport."""
import json

import httpx
import pytest

from nootverse_client.exceptions import ErrorCode, RejectedError, TransportError
from nootverse_client.remote.channel import ActorChannel
from nootverse_client.remote.http_channel import HttpActorChannel

BASE = "http://gateway.test/api/rrkah-fqaaa-aaaaa-aaaaq-cai"


def _channel(handler, credential="token-1"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpActorChannel(BASE + "/", credential=credential, client=client)


class TestHttpActorChannel:
    """Request shape and reply classification."""

    @pytest.mark.anyio
    async def test_posts_args_and_returns_ok(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"ok": "universe-7"})

        channel = _channel(handler)
        assert isinstance(channel, ActorChannel)
        result = await channel.call("deleteUniverse", 3)
        assert result == "universe-7"
        assert seen["url"] == f"{BASE}/deleteUniverse"
        assert seen["body"] == {"args": [3]}
        assert seen["auth"] == "Bearer token-1"

    @pytest.mark.anyio
    async def test_anonymous_sends_no_authorization(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"ok": []})

        channel = _channel(handler, credential=None)
        assert channel.authenticated is False
        assert await channel.call("getPublicUniverses") == []
        assert seen["auth"] is None

    @pytest.mark.anyio
    async def test_unknown_method_never_sent(self):
        def handler(request):
            raise AssertionError("request should not be sent")

        with pytest.raises(RejectedError):
            await _channel(handler).call("dropEverything")

    @pytest.mark.anyio
    async def test_network_failure_is_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TransportError) as exc_info:
            await _channel(handler).call("getAllOwnedNotes")
        assert exc_info.value.code is ErrorCode.TRANSPORT_FAILED
        assert exc_info.value.method == "getAllOwnedNotes"

    @pytest.mark.anyio
    async def test_auth_status_is_credential_rejected(self):
        channel = _channel(lambda request: httpx.Response(401, json={"err": "expired"}))
        with pytest.raises(TransportError) as exc_info:
            await channel.call("getAllOwnedNotes")
        assert exc_info.value.code is ErrorCode.CREDENTIAL_REJECTED

    @pytest.mark.anyio
    async def test_server_error_is_transport_error(self):
        channel = _channel(lambda request: httpx.Response(502, text="bad gateway"))
        with pytest.raises(TransportError):
            await channel.call("getStats")

    @pytest.mark.anyio
    async def test_err_reply_is_rejected(self):
        channel = _channel(lambda request: httpx.Response(400, json={"err": "index out of range"}))
        with pytest.raises(RejectedError) as exc_info:
            await channel.call("updateNote", 9, "n", "t", "", [])
        assert exc_info.value.reason == "index out of range"
        assert exc_info.value.code is ErrorCode.REMOTE_REJECTED

    @pytest.mark.anyio
    async def test_non_json_reply_is_malformed(self):
        channel = _channel(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(RejectedError) as exc_info:
            await channel.call("getStats")
        assert exc_info.value.code is ErrorCode.MALFORMED_RESPONSE

    @pytest.mark.anyio
    async def test_reply_without_ok_is_malformed(self):
        channel = _channel(lambda request: httpx.Response(200, json={"value": 1}))
        with pytest.raises(RejectedError) as exc_info:
            await channel.call("getStats")
        assert exc_info.value.code is ErrorCode.MALFORMED_RESPONSE

    @pytest.mark.anyio
    async def test_null_ok_is_a_value(self):
        channel = _channel(lambda request: httpx.Response(200, json={"ok": None}))
        assert await channel.call("deleteNote", 0) is None

    @pytest.mark.anyio
    async def test_aclose_leaves_injected_client_open(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        channel = HttpActorChannel(BASE, client=client)
        await channel.aclose()
        assert client.is_closed is False
        await client.aclose()
