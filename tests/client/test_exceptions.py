"""Unit tests for the JMAP client exception hierarchy.

This module tests the exceptions defined in jmap_client/exceptions.py:
inheritance, message formatting, and the machine-readable ``kind`` and
``to_dict()`` surface.
"""

import pytest

from jmap_client.exceptions import (
    BlobDecodeError,
    BlobEncodingError,
    BlobError,
    BlobTooLargeError,
    BlobUploadError,
    CapabilityError,
    ConfigError,
    ConnectError,
    ConnectionError,
    EmptyResponseError,
    EnvelopeError,
    ErrorType,
    InvalidResponseError,
    JMAPClientError,
    MalformedSessionError,
    MethodError,
    NoAccountError,
    NotFoundError,
    ProtocolError,
    SetItemError,
    TimeoutError,
    TransportError,
    UnexpectedMethodError,
)
from jmap_client.models import SetError


# =============================================================================
# Hierarchy
# =============================================================================


class TestHierarchy:
    """Tests that every exception sits under the right layer."""

    @pytest.mark.parametrize(
        "exc_class, parent",
        [
            (ConfigError, JMAPClientError),
            (TransportError, JMAPClientError),
            (ConnectionError, TransportError),
            (TimeoutError, TransportError),
            (ConnectError, JMAPClientError),
            (MalformedSessionError, ConnectError),
            (NoAccountError, ConnectError),
            (ProtocolError, JMAPClientError),
            (EnvelopeError, ProtocolError),
            (EmptyResponseError, ProtocolError),
            (UnexpectedMethodError, ProtocolError),
            (MethodError, ProtocolError),
            (InvalidResponseError, ProtocolError),
            (CapabilityError, JMAPClientError),
            (SetItemError, JMAPClientError),
            (NotFoundError, JMAPClientError),
            (BlobError, JMAPClientError),
            (BlobUploadError, BlobError),
            (BlobEncodingError, BlobError),
            (BlobTooLargeError, BlobError),
            (BlobDecodeError, BlobError),
        ],
    )
    def test_subclass(self, exc_class, parent) -> None:
        """Each exception inherits from its layer."""
        assert issubclass(exc_class, parent)

    def test_kinds_are_unique(self) -> None:
        """Every concrete exception has its own kind string."""
        classes = [
            JMAPClientError, ConfigError, TransportError, ConnectionError,
            TimeoutError, ConnectError, MalformedSessionError, NoAccountError,
            ProtocolError, EnvelopeError, EmptyResponseError,
            UnexpectedMethodError, MethodError, InvalidResponseError,
            CapabilityError, SetItemError, NotFoundError, BlobError,
            BlobUploadError, BlobEncodingError, BlobTooLargeError,
            BlobDecodeError,
        ]
        kinds = [cls.kind for cls in classes]
        assert len(kinds) == len(set(kinds))


# =============================================================================
# Individual exceptions
# =============================================================================


class TestJMAPClientError:
    """Tests for the base exception."""

    def test_message_and_dict(self) -> None:
        """Base error exposes message through str and to_dict."""
        error = JMAPClientError("boom")
        assert str(error) == "boom"
        assert error.to_dict() == {"kind": "error", "message": "boom"}


class TestTransportErrors:
    """Tests for TransportError and its subclasses."""

    def test_str_includes_status(self) -> None:
        error = TransportError("Unauthorized", status=401, url="https://x/api")
        assert str(error) == "[HTTP 401] Unauthorized"
        assert error.to_dict() == {
            "kind": "transport",
            "message": "Unauthorized",
            "status": 401,
            "url": "https://x/api",
        }

    def test_str_without_status(self) -> None:
        assert str(TransportError("failed")) == "failed"

    def test_connection_error_str_includes_url(self) -> None:
        error = ConnectionError("Failed to connect", url="https://x")
        assert str(error) == "Failed to connect (url: https://x)"
        assert error.status is None

    def test_timeout_error_str(self) -> None:
        error = TimeoutError("Timed out", timeout=30.0, url="https://x")
        assert str(error) == "Timed out (timeout: 30.0s, url: https://x)"


class TestProtocolErrors:
    """Tests for protocol-level exceptions."""

    def test_no_account_default_message(self) -> None:
        assert str(NoAccountError()) == "No account in session"

    def test_empty_response_names_method(self) -> None:
        error = EmptyResponseError("Email/get")
        assert error.method == "Email/get"
        assert "Email/get" in str(error)

    def test_unexpected_method(self) -> None:
        error = UnexpectedMethodError("Email/get", "Mailbox/get")
        data = error.to_dict()
        assert data["expected"] == "Email/get"
        assert data["actual"] == "Mailbox/get"

    def test_envelope_error_keeps_body(self) -> None:
        error = EnvelopeError("bad envelope", body={"foo": 1})
        assert error.body == {"foo": 1}


class TestMethodError:
    """Tests for MethodError."""

    def test_type_and_description_preserved(self) -> None:
        """The server's type and description survive intact."""
        error = MethodError(
            "Email/query",
            {"type": "unsupportedFilter", "description": "bad filter"},
        )

        assert error.error_type == ErrorType.UNSUPPORTED_FILTER
        assert error.description == "bad filter"
        assert str(error) == "Email/query failed: unsupportedFilter (bad filter)"
        assert error.to_dict()["type"] == "unsupportedFilter"

    def test_missing_type(self) -> None:
        error = MethodError("Email/get", {})
        assert error.error_type == "unknown"
        assert error.description is None

    def test_retryable(self) -> None:
        """Only serverUnavailable is flagged as temporary."""
        assert MethodError("Email/get", {"type": "serverUnavailable"}).is_retryable
        assert not MethodError("Email/get", {"type": "serverFail"}).is_retryable


class TestSetItemError:
    """Tests for SetItemError."""

    def test_wraps_set_error(self) -> None:
        set_error = SetError(
            type="invalidProperties",
            description="name is required",
            properties=["name"],
        )
        error = SetItemError("Mailbox/set", "new", set_error)

        assert error.error_type == "invalidProperties"
        assert str(error) == "Mailbox/set rejected new: invalidProperties (name is required)"
        assert error.to_dict()["properties"] == ["name"]


class TestOtherErrors:
    """Tests for capability, lookup and blob exceptions."""

    def test_capability_error(self) -> None:
        error = CapabilityError("urn:ietf:params:jmap:principals", account_id="A1")
        assert error.kind == "capability_not_supported"
        assert error.capability == "urn:ietf:params:jmap:principals"
        assert "A1" in str(error)

    def test_not_found(self) -> None:
        error = NotFoundError("Mailbox", "Archive")
        assert str(error) == "Mailbox not found: Archive"
        assert error.to_dict()["id"] == "Archive"

    def test_blob_too_large(self) -> None:
        error = BlobTooLargeError(2000, 1000)
        assert error.size == 2000
        assert error.limit == 1000
        assert error.to_dict()["limit"] == 1000

    def test_blob_upload_error_keeps_set_error(self) -> None:
        set_error = SetError(type="overQuota")
        error = BlobUploadError("upload failed", set_error=set_error)
        assert error.set_error.type == "overQuota"
