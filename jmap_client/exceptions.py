"""Exception hierarchy for the JMAP client.

This module defines all exceptions that can be raised by the JMAP client
library. The hierarchy follows the layers a call passes through, so callers
can catch a whole layer or a single condition.

Exception Hierarchy:
    JMAPClientError (base)
    ├── ConfigError - Settings could not be built from the environment
    ├── TransportError - HTTP round trip failed or returned non-2xx
    │   ├── ConnectionError - Could not reach the server
    │   └── TimeoutError - Request timed out
    ├── ConnectError - Session bootstrap failed
    │   ├── MalformedSessionError - Session document missing required fields
    │   └── NoAccountError - Session lists no accounts
    ├── ProtocolError - Response envelope did not match the protocol
    │   ├── EnvelopeError - Not JSON, missing methodResponses, bad triple
    │   ├── EmptyResponseError - methodResponses was empty
    │   ├── UnexpectedMethodError - Response name differs from request name
    │   ├── MethodError - Server answered with an "error" invocation
    │   └── InvalidResponseError - Result arguments lack an expected field
    ├── CapabilityError - Account does not advertise a required capability
    ├── SetItemError - One item of a /set call was rejected
    ├── NotFoundError - A requested entity was not returned
    └── BlobError - Blob data-quality or upload conditions
        ├── BlobUploadError
        ├── BlobEncodingError
        ├── BlobTooLargeError
        └── BlobDecodeError

Every exception carries a stable ``kind`` string and a ``to_dict()`` method
so front ends can emit machine-readable diagnostics.

Example:
    Reacting to a method-level error::

        try:
            ids = await client.email.query(limit=10)
        except MethodError as e:
            if e.error_type == ErrorType.SERVER_UNAVAILABLE:
                ...  # back off and try again later
            else:
                raise
"""

from typing import Any


class ErrorType:
    """String discriminants used by the server for error objects.

    Method-level values appear as the ``type`` of an ``"error"`` invocation
    (RFC 8620 §3.6.2). Request-level values are returned as problem details
    on the HTTP response. SetError values appear inside ``notCreated``,
    ``notUpdated`` and ``notDestroyed`` maps.
    """

    # Method-level
    SERVER_UNAVAILABLE = "serverUnavailable"
    SERVER_FAIL = "serverFail"
    SERVER_PARTIAL_FAIL = "serverPartialFail"
    UNKNOWN_METHOD = "unknownMethod"
    INVALID_ARGUMENTS = "invalidArguments"
    INVALID_RESULT_REFERENCE = "invalidResultReference"
    FORBIDDEN = "forbidden"
    ACCOUNT_NOT_FOUND = "accountNotFound"
    ACCOUNT_NOT_SUPPORTED_BY_METHOD = "accountNotSupportedByMethod"
    ACCOUNT_READ_ONLY = "accountReadOnly"
    CANNOT_CALCULATE_CHANGES = "cannotCalculateChanges"
    ANCHOR_NOT_FOUND = "anchorNotFound"
    UNSUPPORTED_FILTER = "unsupportedFilter"
    UNSUPPORTED_SORT = "unsupportedSort"
    TOO_MANY_CHANGES = "tooManyChanges"
    FROM_ACCOUNT_NOT_FOUND = "fromAccountNotFound"
    FROM_ACCOUNT_NOT_SUPPORTED_BY_METHOD = "fromAccountNotSupportedByMethod"
    STATE_MISMATCH = "stateMismatch"
    REQUEST_TOO_LARGE = "requestTooLarge"

    # Request-level
    UNKNOWN_CAPABILITY = "urn:ietf:params:jmap:error:unknownCapability"
    NOT_JSON = "urn:ietf:params:jmap:error:notJSON"
    NOT_REQUEST = "urn:ietf:params:jmap:error:notRequest"
    LIMIT = "urn:ietf:params:jmap:error:limit"

    # SetError
    NOT_FOUND = "notFound"
    INVALID_PATCH = "invalidPatch"
    WILL_DESTROY = "willDestroy"
    INVALID_PROPERTIES = "invalidProperties"
    SINGLETON = "singleton"
    OVER_QUOTA = "overQuota"
    TOO_LARGE = "tooLarge"
    RATE_LIMIT = "rateLimit"
    MAILBOX_HAS_CHILD = "mailboxHasChild"
    MAILBOX_HAS_EMAIL = "mailboxHasEmail"

    RETRYABLE = frozenset({SERVER_UNAVAILABLE})


class JMAPClientError(Exception):
    """Base exception for all JMAP client errors.

    All exceptions raised by the library inherit from this class, making it
    easy to catch any client-related error.

    Attributes:
        message: Human-readable error description.
    """

    kind = "error"

    def __init__(self, message: str) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
        """
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Return a machine-readable description of the error."""
        return {"kind": self.kind, "message": self.message}


class ConfigError(JMAPClientError):
    """Client settings could not be assembled."""

    kind = "config"


class TransportError(JMAPClientError):
    """The HTTP round trip failed.

    Raised for any non-2xx response, in which case ``message`` holds the raw
    response body, and for failures to read the response at all.

    Attributes:
        message: Raw response body or a description of the failure.
        status: HTTP status code, when a response was received.
        url: The URL that was requested.
    """

    kind = "transport"

    def __init__(
        self,
        message: str,
        status: int | None = None,
        url: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Raw response body or a description of the failure.
            status: HTTP status code, if any.
            url: The URL that was requested.
        """
        self.status = status
        self.url = url
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including status code if available."""
        if self.status is not None:
            return f"[HTTP {self.status}] {self.message}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status"] = self.status
        data["url"] = self.url
        return data


class ConnectionError(TransportError):
    """Failed to connect to the JMAP server.

    Attributes:
        cause: The underlying exception that caused the connection failure.
    """

    kind = "connection"

    def __init__(
        self,
        message: str,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.cause = cause
        super().__init__(message, status=None, url=url)

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} (url: {self.url})"
        return self.message


class TimeoutError(TransportError):
    """Request timed out.

    Attributes:
        timeout: The timeout value in seconds.
    """

    kind = "timeout"

    def __init__(
        self,
        message: str,
        timeout: float | None = None,
        url: str | None = None,
    ) -> None:
        self.timeout = timeout
        super().__init__(message, status=None, url=url)

    def __str__(self) -> str:
        parts = [self.message]
        if self.timeout is not None:
            parts.append(f"timeout: {self.timeout}s")
        if self.url:
            parts.append(f"url: {self.url}")
        return " ".join(parts) if len(parts) == 1 else f"{parts[0]} ({', '.join(parts[1:])})"


class ConnectError(JMAPClientError):
    """Session bootstrap failed."""

    kind = "connect"


class MalformedSessionError(ConnectError):
    """The Session document could not be parsed or lacks required fields."""

    kind = "malformed_session"


class NoAccountError(ConnectError):
    """The Session document lists no accounts."""

    kind = "no_account"

    def __init__(self, message: str = "No account in session") -> None:
        super().__init__(message)


class ProtocolError(JMAPClientError):
    """The server's response did not match the protocol."""

    kind = "protocol"


class EnvelopeError(ProtocolError):
    """The response envelope is malformed.

    Raised when the body is not JSON, lacks ``methodResponses``, or contains
    a response entry that is not a ``[name, arguments, tag]`` triple of the
    right types.

    Attributes:
        body: The decoded response body, if it parsed as JSON.
    """

    kind = "envelope"

    def __init__(self, message: str, body: Any = None) -> None:
        self.body = body
        super().__init__(message)


class EmptyResponseError(ProtocolError):
    """The ``methodResponses`` array was empty.

    This is a protocol violation, distinct from a valid response that
    happens to contain zero entities.
    """

    kind = "empty_response"

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Empty JMAP response for {method}")


class UnexpectedMethodError(ProtocolError):
    """The first response's name does not match the request's method name.

    Attributes:
        expected: The method name that was called.
        actual: The method name the server answered with.
    """

    kind = "unexpected_method"

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Unexpected JMAP response method: expected {expected}, got {actual}"
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["expected"] = self.expected
        data["actual"] = self.actual
        return data


class MethodError(ProtocolError):
    """The server answered a method call with an ``"error"`` invocation.

    Attributes:
        method: The method name that was called.
        error_type: The ``type`` field from the error arguments.
        description: The optional ``description`` field.
        arguments: The full error argument object.
    """

    kind = "method_error"

    def __init__(self, method: str, arguments: dict[str, Any]) -> None:
        self.method = method
        self.arguments = arguments
        self.error_type = str(arguments.get("type", "unknown"))
        self.description = arguments.get("description")
        message = f"{method} failed: {self.error_type}"
        if self.description:
            message = f"{message} ({self.description})"
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether the server indicated a temporary condition.

        The client never retries on its own; this is a hint for callers.
        """
        return self.error_type in ErrorType.RETRYABLE

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["method"] = self.method
        data["type"] = self.error_type
        data["description"] = self.description
        return data


class InvalidResponseError(ProtocolError):
    """The method result lacks a field the binding expects."""

    kind = "invalid_response"


class CapabilityError(JMAPClientError):
    """The active account does not advertise a required capability.

    Raised before any network I/O is attempted.

    Attributes:
        capability: The missing capability URI.
    """

    kind = "capability_not_supported"

    def __init__(self, capability: str, account_id: str | None = None) -> None:
        self.capability = capability
        self.account_id = account_id
        message = f"Capability not supported by account: {capability}"
        if account_id:
            message = f"{message} (account: {account_id})"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["capability"] = self.capability
        return data


class SetItemError(JMAPClientError):
    """A single create/update/destroy inside a /set call was rejected.

    Attributes:
        method: The method name, e.g. ``"Mailbox/set"``.
        key: Creation key or identifier of the rejected item.
        set_error: The SetError object returned by the server.
    """

    kind = "set_error"

    def __init__(self, method: str, key: str, set_error: Any) -> None:
        self.method = method
        self.key = key
        self.set_error = set_error
        error_type = getattr(set_error, "type", "unknown")
        description = getattr(set_error, "description", None)
        message = f"{method} rejected {key}: {error_type}"
        if description:
            message = f"{message} ({description})"
        super().__init__(message)

    @property
    def error_type(self) -> str:
        return getattr(self.set_error, "type", "unknown")

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["key"] = self.key
        data["type"] = self.error_type
        properties = getattr(self.set_error, "properties", None)
        if properties:
            data["properties"] = properties
        return data


class NotFoundError(JMAPClientError):
    """A requested entity was not returned by the server.

    Attributes:
        type_name: The entity type, e.g. ``"Email"``.
        id: The identifier that was not found.
    """

    kind = "not_found"

    def __init__(self, type_name: str, id: str) -> None:
        self.type_name = type_name
        self.id = id
        super().__init__(f"{type_name} not found: {id}")

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["type"] = self.type_name
        data["id"] = self.id
        return data


class BlobError(JMAPClientError):
    """Base class for blob conditions."""

    kind = "blob"


class BlobUploadError(BlobError):
    """A blob upload did not produce a blob identifier.

    The call itself may have succeeded; the individual blob failed.

    Attributes:
        set_error: The SetError from ``notCreated``, if the server gave one.
    """

    kind = "blob_upload"

    def __init__(self, message: str, set_error: Any = None) -> None:
        self.set_error = set_error
        super().__init__(message)


class BlobEncodingError(BlobError):
    """Blob data is not valid as text (``isEncodingProblem``)."""

    kind = "blob_encoding"


class BlobTooLargeError(BlobError):
    """Payload exceeds the size the server advertises it will accept.

    Attributes:
        size: Size of the rejected payload in bytes.
        limit: Advertised maximum in bytes.
    """

    kind = "blob_too_large"

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Blob of {size} bytes exceeds server limit of {limit} bytes")

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["size"] = self.size
        data["limit"] = self.limit
        return data


class BlobDecodeError(BlobError):
    """Inline base64 data could not be decoded."""

    kind = "blob_decode"
