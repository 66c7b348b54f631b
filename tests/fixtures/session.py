"""Shared fixtures for JMAP client testing.

Provides factory functions for Session documents and canned method
responses, a FakeTransport that replays canned bytes and records every
request, and pytest fixtures wiring these into SessionContext and a mocked
InvocationEngine.
"""

import json
from typing import Any
from unittest.mock import AsyncMock

import pytest

from jmap_client import capabilities
from jmap_client._session import SessionContext
from jmap_client.models import Session

SESSION_URL = "https://jmap.example.com/.well-known/jmap"
API_URL = "https://jmap.example.com/api/"
DOWNLOAD_URL = "https://jmap.example.com/download/{accountId}/{blobId}/{name}?type={type}"
UPLOAD_URL = "https://jmap.example.com/upload/{accountId}/"
ACCOUNT_ID = "A1"


def create_account_capabilities(**overrides: Any) -> dict[str, Any]:
    """Create an accountCapabilities map advertising every supported capability.

    Keyword arguments replace (or with a None value, remove) entries by URI
    short name, e.g. ``blob={"maxSizeBlobSet": 10}`` or ``principals=None``.
    """
    caps: dict[str, Any] = {
        capabilities.CORE: {},
        capabilities.MAIL: {},
        capabilities.SUBMISSION: {},
        capabilities.VACATION_RESPONSE: {},
        capabilities.BLOB: {
            "maxSizeBlobSet": 1000,
            "maxDataSources": 16,
            "supportedTypeNames": ["Email", "Mailbox"],
            "supportedDigestAlgorithms": ["sha", "sha-256"],
        },
        capabilities.PRINCIPALS: {"currentUserPrincipalId": "P1"},
        capabilities.PRINCIPALS_OWNER: {"accountIdForPrincipal": ACCOUNT_ID, "principalId": "P1"},
        capabilities.MASKED_EMAIL: {},
    }
    for name, value in overrides.items():
        uri = capabilities.capability_uri(name)
        if value is None:
            caps.pop(uri, None)
        else:
            caps[uri] = value
    return caps


def create_session_data(
    accounts: dict[str, Any] | None = None,
    account_capabilities: dict[str, Any] | None = None,
    **overrides: Any,
) -> dict[str, Any]:
    """Create a Session document as the server would return it."""
    if accounts is None:
        accounts = {
            ACCOUNT_ID: {
                "name": "user@example.com",
                "isPersonal": True,
                "isReadOnly": False,
                "accountCapabilities": (
                    account_capabilities
                    if account_capabilities is not None
                    else create_account_capabilities()
                ),
            }
        }
    data: dict[str, Any] = {
        "capabilities": {
            capabilities.CORE: {
                "maxSizeUpload": 50_000_000,
                "maxConcurrentUpload": 4,
                "maxSizeRequest": 10_000_000,
                "maxConcurrentRequests": 4,
                "maxCallsInRequest": 16,
                "maxObjectsInGet": 500,
                "maxObjectsInSet": 500,
                "collationAlgorithms": ["i;ascii-casemap"],
            },
            capabilities.MAIL: {},
        },
        "accounts": accounts,
        "primaryAccounts": {capabilities.MAIL: ACCOUNT_ID},
        "username": "user@example.com",
        "apiUrl": API_URL,
        "downloadUrl": DOWNLOAD_URL,
        "uploadUrl": UPLOAD_URL,
        "eventSourceUrl": "https://jmap.example.com/events/",
        "state": "s1",
    }
    data.update(overrides)
    return data


def create_session(**kwargs: Any) -> Session:
    return Session.model_validate(create_session_data(**kwargs))


def method_response(name: str, arguments: dict[str, Any], tag: str = "0") -> bytes:
    """Serialize a single-invocation response envelope."""
    return json.dumps(
        {"methodResponses": [[name, arguments, tag]], "sessionState": "s1"}
    ).encode("utf-8")


class FakeTransport:
    """Transport that replays canned response bodies.

    Each of ``post_json``, ``post_binary`` and ``get`` pops the next body
    from its own queue; an exception in a queue is raised instead. Every
    request is recorded in ``requests`` as ``(kind, url, body, content_type)``.
    """

    def __init__(
        self,
        json_responses: list[Any] | None = None,
        get_responses: list[Any] | None = None,
        binary_responses: list[Any] | None = None,
    ) -> None:
        self.json_responses = list(json_responses or [])
        self.get_responses = list(get_responses or [])
        self.binary_responses = list(binary_responses or [])
        self.requests: list[tuple[str, str, bytes, str | None]] = []

    @staticmethod
    def _next(queue: list[Any]) -> bytes:
        if not queue:
            raise AssertionError("FakeTransport has no response queued")
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def post_json(self, url: str, body: bytes) -> bytes:
        self.requests.append(("post_json", url, body, "application/json"))
        return self._next(self.json_responses)

    async def post_binary(self, url: str, body: bytes, content_type: str) -> bytes:
        self.requests.append(("post_binary", url, body, content_type))
        return self._next(self.binary_responses)

    async def get(self, url: str, body: bytes = b"") -> bytes:
        self.requests.append(("get", url, body, None))
        return self._next(self.get_responses)

    def sent_json(self, index: int = -1) -> dict[str, Any]:
        """Decode a recorded JSON request body, the last one by default."""
        json_requests = [r for r in self.requests if r[0] == "post_json"]
        return json.loads(json_requests[index][2])


@pytest.fixture
def session_data() -> dict[str, Any]:
    """Provide a Session document with one personal, fully capable account."""
    return create_session_data()


@pytest.fixture
def session(session_data: dict[str, Any]) -> Session:
    return Session.model_validate(session_data)


@pytest.fixture
def context(session: Session) -> SessionContext:
    """Provide a SessionContext for the fixture session's account."""
    return SessionContext(session)


@pytest.fixture
def mock_engine() -> AsyncMock:
    """Provide a mocked InvocationEngine.

    Set ``mock_engine.call_method.return_value`` to the result arguments the
    call should produce. ``mock_engine.transport`` is itself an AsyncMock.
    """
    engine = AsyncMock()
    engine.api_url = API_URL
    engine.transport = AsyncMock()
    return engine


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()
