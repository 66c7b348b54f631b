"""JMAP Client Library.

This module provides a type-safe, asynchronous Python client for JMAP
servers (RFC 8620 and RFC 8621), with the Blob (RFC 9404) and Principals
(RFC 9670) extensions and Fastmail's MaskedEmail data type.

Example:
    Connecting and reading mail::

        from jmap_client import AsyncJMAPClient

        async with await AsyncJMAPClient.connect(token) as client:
            inbox = await client.mailbox.resolve_id("Inbox")
            for email in await client.email.list(mailbox_id=inbox, limit=10):
                print(email.subject)

    Settings from the environment::

        from jmap_client import AsyncJMAPClient, ClientSettings

        settings = ClientSettings.from_env()
        async with await AsyncJMAPClient.from_settings(settings) as client:
            blob_id = await client.blob.upload_text("hello")

Exports:
    AsyncJMAPClient: Asynchronous client for a JMAP server.
    ClientSettings: Connection settings, optionally read from the environment.

    Exceptions:
        JMAPClientError: Base exception for all client errors.
        TransportError: HTTP round trip failed.
        ConnectError: Session bootstrap failed.
        ProtocolError: Response did not match the protocol.
        MethodError: Server answered a call with an error.
        CapabilityError: Account lacks a required capability.
        SetItemError: One item of a /set call was rejected.
        BlobError: Blob data-quality and upload conditions.
"""

from jmap_client import capabilities
from jmap_client._base import AsyncBaseClient, AsyncEntityClient
from jmap_client._blob import (
    AsyncBlobClient,
    Base64Source,
    BlobCopyResponse,
    BlobCreatedInfo,
    BlobData,
    BlobLookupInfo,
    BlobRefSource,
    BlobUploadInfo,
    BlobUploadObject,
    BlobUploadResponse,
    DataSource,
    TextSource,
    data_source_from_bytes,
    data_source_from_text,
    data_source_from_wire,
    decode_base64,
    encode_base64,
)
from jmap_client._email import (
    AsyncEmailClient,
    Email,
    EmailAddress,
    EmailBodyPart,
    EmailBodyValue,
    EmailCreate,
    EmailFilter,
    EmailImport,
    ParsedEmail,
    SearchSnippet,
)
from jmap_client._engine import InvocationEngine, build_request, parse_response
from jmap_client._http import HTTPXTransport, Transport
from jmap_client._mailbox import AsyncMailboxClient, Mailbox, MailboxFilter, MailboxRights
from jmap_client._masked_email import AsyncMaskedEmailClient, MaskedEmail, MaskedEmailState
from jmap_client._principals import (
    AsyncPrincipalClient,
    AsyncShareNotificationClient,
    ChangedBy,
    Principal,
    PrincipalFilter,
    ShareNotification,
    ShareNotificationFilter,
)
from jmap_client._session import FASTMAIL_SESSION_URL, SessionContext, select_account
from jmap_client._submission import (
    AsyncEmailSubmissionClient,
    AsyncIdentityClient,
    EmailSubmission,
    Envelope,
    Identity,
    SubmissionAddress,
)
from jmap_client._thread import AsyncThreadClient, Thread
from jmap_client._vacation import AsyncVacationResponseClient, VacationResponse
from jmap_client.client import AsyncJMAPClient
from jmap_client.config import ClientSettings
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
from jmap_client.models import (
    AccountData,
    AddedItem,
    BlobCapability,
    ChangesResponse,
    Comparator,
    CoreCapability,
    Entity,
    Filter,
    FilterCondition,
    FilterOperator,
    GetResponse,
    Invocation,
    PrincipalsCapability,
    PrincipalsOwnerCapability,
    QueryChangesResponse,
    QueryResponse,
    Request,
    Response,
    Session,
    SetError,
    SetResponse,
    and_,
    not_,
    or_,
)

__all__ = [
    # Main client
    "AsyncJMAPClient",
    "ClientSettings",
    "FASTMAIL_SESSION_URL",
    "capabilities",
    # Transport and engine
    "Transport",
    "HTTPXTransport",
    "InvocationEngine",
    "build_request",
    "parse_response",
    "SessionContext",
    "select_account",
    # Sub-clients
    "AsyncBaseClient",
    "AsyncEntityClient",
    "AsyncEmailClient",
    "AsyncMailboxClient",
    "AsyncThreadClient",
    "AsyncIdentityClient",
    "AsyncEmailSubmissionClient",
    "AsyncVacationResponseClient",
    "AsyncBlobClient",
    "AsyncPrincipalClient",
    "AsyncShareNotificationClient",
    "AsyncMaskedEmailClient",
    # Shared models
    "Session",
    "AccountData",
    "CoreCapability",
    "BlobCapability",
    "PrincipalsCapability",
    "PrincipalsOwnerCapability",
    "Invocation",
    "Request",
    "Response",
    "Entity",
    "Comparator",
    "Filter",
    "FilterCondition",
    "FilterOperator",
    "and_",
    "or_",
    "not_",
    "SetError",
    "GetResponse",
    "QueryResponse",
    "QueryChangesResponse",
    "AddedItem",
    "ChangesResponse",
    "SetResponse",
    # Email
    "Email",
    "ParsedEmail",
    "EmailAddress",
    "EmailBodyPart",
    "EmailBodyValue",
    "EmailCreate",
    "EmailFilter",
    "EmailImport",
    "SearchSnippet",
    # Mailbox and thread
    "Mailbox",
    "MailboxFilter",
    "MailboxRights",
    "Thread",
    # Submission and vacation
    "Identity",
    "EmailSubmission",
    "Envelope",
    "SubmissionAddress",
    "VacationResponse",
    # Blob
    "DataSource",
    "TextSource",
    "Base64Source",
    "BlobRefSource",
    "BlobUploadObject",
    "BlobUploadResponse",
    "BlobCreatedInfo",
    "BlobData",
    "BlobLookupInfo",
    "BlobCopyResponse",
    "BlobUploadInfo",
    "data_source_from_bytes",
    "data_source_from_text",
    "data_source_from_wire",
    "encode_base64",
    "decode_base64",
    # Principals
    "Principal",
    "PrincipalFilter",
    "ShareNotification",
    "ShareNotificationFilter",
    "ChangedBy",
    # Masked email
    "MaskedEmail",
    "MaskedEmailState",
    # Exceptions
    "ErrorType",
    "JMAPClientError",
    "ConfigError",
    "TransportError",
    "ConnectionError",
    "TimeoutError",
    "ConnectError",
    "MalformedSessionError",
    "NoAccountError",
    "ProtocolError",
    "EnvelopeError",
    "EmptyResponseError",
    "UnexpectedMethodError",
    "MethodError",
    "InvalidResponseError",
    "CapabilityError",
    "SetItemError",
    "NotFoundError",
    "BlobError",
    "BlobUploadError",
    "BlobEncodingError",
    "BlobTooLargeError",
    "BlobDecodeError",
]
