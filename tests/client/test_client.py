"""Unit tests for AsyncJMAPClient.

This module tests jmap_client/client.py end to end over a FakeTransport:
- connect(): session fetch, account selection, error cleanup
- Capability queries against the stored Session
- Raw method calls and Core/echo
- Lazy sub-client properties and lifecycle
"""

import json
import logging

import httpx
import pytest

from jmap_client import capabilities
from jmap_client._email import AsyncEmailClient
from jmap_client._http import HTTPXTransport
from jmap_client.client import AsyncJMAPClient
from jmap_client.config import ClientSettings
from jmap_client.exceptions import (
    CapabilityError,
    MalformedSessionError,
    NoAccountError,
    TransportError,
)
from tests.fixtures.session import (
    API_URL,
    SESSION_URL,
    FakeTransport,
    create_account_capabilities,
    create_session_data,
    method_response,
)


def session_bytes(**kwargs) -> bytes:
    return json.dumps(create_session_data(**kwargs)).encode()


# =============================================================================
# Connect
# =============================================================================


class TestConnect:
    """Tests for AsyncJMAPClient.connect."""

    async def test_connect(self, caplog) -> None:
        """The Session is fetched once and the personal account selected."""
        transport = FakeTransport(get_responses=[session_bytes()])

        with caplog.at_level(logging.INFO, logger="jmap_client.client"):
            client = await AsyncJMAPClient.connect(
                session_url=SESSION_URL,
                transport=transport,
            )

        assert client.account_id == "A1"
        assert client.api_url == API_URL
        assert client.session.username == "user@example.com"
        assert transport.requests == [("get", SESSION_URL, b"", None)]
        assert "Connected to" in caplog.text

    async def test_explicit_account(self) -> None:
        accounts = {
            "A1": {"name": "Me", "isPersonal": True, "accountCapabilities": {}},
            "A2": {"name": "Shared", "isPersonal": False, "accountCapabilities": {}},
        }
        transport = FakeTransport(get_responses=[session_bytes(accounts=accounts)])

        client = await AsyncJMAPClient.connect(transport=transport, account_id="A2")

        assert client.account_id == "A2"

    async def test_no_accounts(self) -> None:
        transport = FakeTransport(get_responses=[session_bytes(accounts={})])

        with pytest.raises(NoAccountError):
            await AsyncJMAPClient.connect(transport=transport)

    async def test_malformed_session(self) -> None:
        transport = FakeTransport(get_responses=[b'{"accounts": {}}'])

        with pytest.raises(MalformedSessionError):
            await AsyncJMAPClient.connect(transport=transport)

    async def test_transport_error(self) -> None:
        transport = FakeTransport(
            get_responses=[TransportError("Unauthorized", status=401, url=SESSION_URL)]
        )

        with pytest.raises(TransportError) as exc_info:
            await AsyncJMAPClient.connect(transport=transport)

        assert exc_info.value.status == 401

    async def test_connect_over_httpx(self) -> None:
        """connect() works over HTTPXTransport backed by a mock transport."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.method == "GET":
                return httpx.Response(200, content=session_bytes())
            return httpx.Response(200, content=method_response("Core/echo", {"ping": 1}))

        transport = HTTPXTransport(token="secret", transport=httpx.MockTransport(handler))
        async with await AsyncJMAPClient.connect(
            session_url=SESSION_URL, transport=transport
        ) as client:
            assert await client.core_echo({"ping": 1}) == {"ping": 1}

        assert seen[0].headers["Authorization"] == "Bearer secret"
        assert str(seen[1].url) == API_URL
        await transport.aclose()

    async def test_from_settings(self) -> None:
        transport = FakeTransport(get_responses=[session_bytes()])
        settings = ClientSettings(token="t", session_url=SESSION_URL)

        client = await AsyncJMAPClient.from_settings(settings, transport=transport)

        assert client.account_id == "A1"
        assert transport.requests[0][1] == SESSION_URL


# =============================================================================
# Capability queries
# =============================================================================


class TestCapabilityQueries:
    """Tests for capability lookups on the stored Session."""

    async def test_all_capabilities(self) -> None:
        transport = FakeTransport(get_responses=[session_bytes()])
        client = await AsyncJMAPClient.connect(transport=transport)

        assert client.has_capability(capabilities.MAIL)
        assert client.has_blob_capability()
        assert client.blob_capability().max_size_blob_set == 1000
        assert client.has_principals_capability()
        assert client.current_principal_id() == "P1"
        assert client.owner_capability().account_id_for_principal == "A1"
        assert client.has_submission_capability()
        assert client.has_vacation_capability()
        assert client.has_masked_email_capability()
        assert client.max_size_upload() == 50_000_000
        assert client.account_capability(capabilities.MAIL) == {}
        assert len(transport.requests) == 1

    async def test_missing_capabilities(self) -> None:
        transport = FakeTransport(
            get_responses=[
                session_bytes(account_capabilities={capabilities.MAIL: {}})
            ]
        )
        client = await AsyncJMAPClient.connect(transport=transport)

        assert not client.has_blob_capability()
        assert client.blob_capability() is None
        assert not client.has_principals_capability()
        assert client.current_principal_id() is None
        assert not client.has_masked_email_capability()


# =============================================================================
# Raw calls
# =============================================================================


class TestCallMethod:
    """Tests for call_method and core_echo."""

    async def test_call_method(self) -> None:
        transport = FakeTransport(
            get_responses=[session_bytes()],
            json_responses=[method_response("Mailbox/get", {"list": [], "notFound": []})],
        )
        client = await AsyncJMAPClient.connect(transport=transport)

        result = await client.call_method(
            [capabilities.CORE, capabilities.MAIL],
            "Mailbox/get",
            {"accountId": client.account_id, "ids": None},
        )

        assert result == {"list": [], "notFound": []}
        assert transport.sent_json() == {
            "using": [capabilities.CORE, capabilities.MAIL],
            "methodCalls": [["Mailbox/get", {"accountId": "A1", "ids": None}, "0"]],
        }

    async def test_call_method_gated(self) -> None:
        """A capability the account lacks fails before any request."""
        transport = FakeTransport(
            get_responses=[
                session_bytes(
                    account_capabilities=create_account_capabilities(principals=None)
                )
            ]
        )
        client = await AsyncJMAPClient.connect(transport=transport)

        with pytest.raises(CapabilityError):
            await client.call_method(
                [capabilities.CORE, capabilities.PRINCIPALS], "Principal/get", {}
            )

        assert len(transport.requests) == 1

    async def test_core_echo(self) -> None:
        transport = FakeTransport(
            get_responses=[session_bytes()],
            json_responses=[method_response("Core/echo", {"hello": True})],
        )
        client = await AsyncJMAPClient.connect(transport=transport)

        assert await client.core_echo({"hello": True}) == {"hello": True}
        assert transport.sent_json()["using"] == [capabilities.CORE]

    async def test_bare_array_option(self) -> None:
        transport = FakeTransport(
            get_responses=[session_bytes()],
            json_responses=[b'[["Core/echo", {"a": 1}, "0"]]'],
        )
        client = await AsyncJMAPClient.connect(transport=transport, accept_bare_array=True)

        assert await client.core_echo({"a": 1}) == {"a": 1}


# =============================================================================
# Sub-clients and lifecycle
# =============================================================================


class TestSubClients:
    """Tests for lazy sub-client properties."""

    async def test_lazy_and_cached(self) -> None:
        client = await AsyncJMAPClient.connect(
            transport=FakeTransport(get_responses=[session_bytes()])
        )

        assert isinstance(client.email, AsyncEmailClient)
        assert client.email is client.email
        for name in (
            "mailbox",
            "thread",
            "identity",
            "submission",
            "vacation",
            "blob",
            "principals",
            "share_notifications",
            "masked_email",
        ):
            sub_client = getattr(client, name)
            assert sub_client is getattr(client, name)
            assert sub_client.account_id == "A1"

    async def test_email_query_end_to_end(self) -> None:
        transport = FakeTransport(
            get_responses=[session_bytes()],
            json_responses=[method_response("Email/query", {"ids": ["M1"], "position": 0})],
        )
        client = await AsyncJMAPClient.connect(transport=transport)

        assert await client.email.query(limit=1) == ["M1"]
        call = transport.sent_json()["methodCalls"][0]
        assert call[0] == "Email/query"
        assert call[1]["accountId"] == "A1"


class TestLifecycle:
    """Tests for close and the async context manager."""

    async def test_close_leaves_caller_transport_open(self) -> None:
        """A transport passed in by the caller is not closed by the client."""
        transport = HTTPXTransport(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, content=session_bytes()))
        )

        async with await AsyncJMAPClient.connect(transport=transport):
            pass

        assert not transport._client.is_closed
        await transport.aclose()
