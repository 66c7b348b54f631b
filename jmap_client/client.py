"""Main JMAP client.

This module provides AsyncJMAPClient, the entry point of the library. It
bootstraps the Session, selects the working account and exposes one
sub-client per supported data type.
"""

import logging
from typing import Any

from jmap_client import capabilities
from jmap_client._blob import AsyncBlobClient
from jmap_client._email import AsyncEmailClient
from jmap_client._engine import InvocationEngine
from jmap_client._http import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, HTTPXTransport, Transport
from jmap_client._mailbox import AsyncMailboxClient
from jmap_client._masked_email import AsyncMaskedEmailClient
from jmap_client._principals import AsyncPrincipalClient, AsyncShareNotificationClient
from jmap_client._session import FASTMAIL_SESSION_URL, SessionContext, fetch_session
from jmap_client._submission import AsyncEmailSubmissionClient, AsyncIdentityClient
from jmap_client._thread import AsyncThreadClient
from jmap_client._vacation import AsyncVacationResponseClient
from jmap_client.config import ClientSettings
from jmap_client.models import (
    BlobCapability,
    PrincipalsCapability,
    PrincipalsOwnerCapability,
    Session,
)

logger = logging.getLogger(__name__)


class AsyncJMAPClient:
    """Asynchronous JMAP client.

    Holds the Session fetched at connect time and the working account.
    Every data type is reached through a lazily created sub-client. Calls
    are independent round trips: nothing is cached or retried, and
    concurrent calls share only the read-only Session.

    Capability queries (``has_blob_capability()`` and friends) are pure
    lookups into the stored Session and never touch the network.

    Example:
        Basic usage with async context manager::

            async with await AsyncJMAPClient.connect(token) as client:
                ids = await client.email.query(limit=10)
                emails = await client.email.get(ids)

                if client.has_masked_email_capability():
                    for masked in await client.masked_email.get_all():
                        print(masked.email, masked.state)

        Calling a method without a typed binding::

            result = await client.call_method(
                [capabilities.CORE, capabilities.MAIL],
                "Mailbox/get",
                {"accountId": client.account_id, "ids": None},
            )
    """

    def __init__(
        self,
        transport: Transport,
        session: Session,
        account_id: str | None = None,
        accept_bare_array: bool = False,
        owns_transport: bool = False,
    ) -> None:
        """Initialize the client from an already fetched Session.

        Most callers use ``connect()`` instead.

        Args:
            transport: Transport used for every request.
            session: The Session document.
            account_id: Working account; selected automatically when omitted.
            accept_bare_array: Accept response bodies that are a bare array
                of invocations instead of an object.
            owns_transport: Close the transport when the client is closed.

        Raises:
            NoAccountError: If no working account can be selected.
        """
        self._transport = transport
        self._owns_transport = owns_transport
        self._context = SessionContext(session, account_id)
        self._engine = InvocationEngine(
            transport,
            session.api_url,
            accept_bare_array=accept_bare_array,
        )

        # Sub-clients (lazy initialization via properties)
        self._email: AsyncEmailClient | None = None
        self._mailbox: AsyncMailboxClient | None = None
        self._thread: AsyncThreadClient | None = None
        self._identity: AsyncIdentityClient | None = None
        self._submission: AsyncEmailSubmissionClient | None = None
        self._vacation: AsyncVacationResponseClient | None = None
        self._blob: AsyncBlobClient | None = None
        self._principals: AsyncPrincipalClient | None = None
        self._share_notifications: AsyncShareNotificationClient | None = None
        self._masked_email: AsyncMaskedEmailClient | None = None

    @classmethod
    async def connect(
        cls,
        token: str | None = None,
        session_url: str = FASTMAIL_SESSION_URL,
        transport: Transport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        account_id: str | None = None,
        accept_bare_array: bool = False,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> "AsyncJMAPClient":
        """Fetch the Session and return a connected client.

        Args:
            token: Bearer token. Ignored when ``transport`` is given.
            session_url: URL of the Session document.
            transport: Transport to use instead of a new HTTPXTransport.
            timeout: Request timeout in seconds for a new HTTPXTransport.
            account_id: Working account; selected automatically when omitted.
            accept_bare_array: Accept response bodies that are a bare array
                of invocations instead of an object.
            user_agent: User-Agent header for a new HTTPXTransport.

        Returns:
            The connected client.

        Raises:
            TransportError: If the Session cannot be fetched.
            MalformedSessionError: If the Session lacks required fields.
            NoAccountError: If the Session lists no accounts.
        """
        owns_transport = transport is None
        if transport is None:
            transport = HTTPXTransport(token=token, timeout=timeout, user_agent=user_agent)

        try:
            session = await fetch_session(transport, session_url)
            client = cls(
                transport,
                session,
                account_id=account_id,
                accept_bare_array=accept_bare_array,
                owns_transport=owns_transport,
            )
        except Exception:
            if owns_transport and isinstance(transport, HTTPXTransport):
                await transport.aclose()
            raise

        logger.info("Connected to %s as %s", client.api_url, session.username or "unknown user")
        return client

    @classmethod
    async def from_settings(
        cls,
        settings: ClientSettings,
        transport: Transport | None = None,
    ) -> "AsyncJMAPClient":
        """Connect using ClientSettings, e.g. from ``ClientSettings.from_env()``."""
        return await cls.connect(
            token=settings.token,
            session_url=settings.session_url,
            transport=transport,
            timeout=settings.timeout,
            user_agent=settings.user_agent,
        )

    async def __aenter__(self) -> "AsyncJMAPClient":
        """Enter async context manager.

        Returns:
            The client instance.
        """
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context manager and close the client."""
        await self.close()

    async def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport and isinstance(self._transport, HTTPXTransport):
            await self._transport.aclose()

    # Session

    @property
    def session(self) -> Session:
        return self._context.session

    @property
    def account_id(self) -> str:
        return self._context.account_id

    @property
    def api_url(self) -> str:
        return self._context.api_url

    # Capability queries

    def has_capability(self, uri: str) -> bool:
        """Whether the working account advertises a capability URI."""
        return self._context.has_capability(uri)

    def account_capability(self, uri: str) -> Any:
        """The working account's raw value for a capability URI, or None."""
        return self._context.capability(uri)

    def has_blob_capability(self) -> bool:
        return self.has_capability(capabilities.BLOB)

    def blob_capability(self) -> BlobCapability | None:
        return self._context.blob_capability()

    def has_principals_capability(self) -> bool:
        return self.has_capability(capabilities.PRINCIPALS)

    def principals_capability(self) -> PrincipalsCapability | None:
        return self._context.principals_capability()

    def owner_capability(self) -> PrincipalsOwnerCapability | None:
        return self._context.owner_capability()

    def current_principal_id(self) -> str | None:
        """The principal of the authenticated user, if the server says."""
        capability = self.principals_capability()
        return capability.current_user_principal_id if capability is not None else None

    def has_submission_capability(self) -> bool:
        return self.has_capability(capabilities.SUBMISSION)

    def has_vacation_capability(self) -> bool:
        return self.has_capability(capabilities.VACATION_RESPONSE)

    def has_masked_email_capability(self) -> bool:
        return self.has_capability(capabilities.MASKED_EMAIL)

    def max_size_upload(self) -> int | None:
        """Largest out-of-band upload the server accepts, in bytes."""
        return self._context.core.max_size_upload

    # Raw invocation

    async def call_method(
        self,
        using: list[str],
        method: str,
        arguments: dict[str, Any],
    ) -> dict[str, Any]:
        """Call any method and return its result arguments.

        Args:
            using: Capability URIs the call depends on.
            method: Method name, e.g. ``"Mailbox/get"``.
            arguments: Method arguments, including ``accountId`` where the
                method takes one.

        Returns:
            The result argument object, unchanged.

        Raises:
            CapabilityError: Before any I/O, if the account does not
                advertise one of ``using``.
            TransportError: If the round trip fails.
            ProtocolError: If the response is malformed or an error.
        """
        self._context.require(*using)
        return await self._engine.call_method(list(using), method, arguments)

    async def core_echo(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Call Core/echo, which returns its arguments unchanged."""
        return await self._engine.call_method(capabilities.using_for(), "Core/echo", arguments)

    # Sub-client properties (lazy initialization)

    @property
    def email(self) -> AsyncEmailClient:
        """Email/* and SearchSnippet/get."""
        if self._email is None:
            self._email = AsyncEmailClient(self._engine, self._context)
        return self._email

    @property
    def mailbox(self) -> AsyncMailboxClient:
        """Mailbox/*."""
        if self._mailbox is None:
            self._mailbox = AsyncMailboxClient(self._engine, self._context)
        return self._mailbox

    @property
    def thread(self) -> AsyncThreadClient:
        """Thread/*."""
        if self._thread is None:
            self._thread = AsyncThreadClient(self._engine, self._context)
        return self._thread

    @property
    def identity(self) -> AsyncIdentityClient:
        """Identity/*, gated on the submission capability."""
        if self._identity is None:
            self._identity = AsyncIdentityClient(self._engine, self._context)
        return self._identity

    @property
    def submission(self) -> AsyncEmailSubmissionClient:
        """EmailSubmission/*, gated on the submission capability."""
        if self._submission is None:
            self._submission = AsyncEmailSubmissionClient(self._engine, self._context)
        return self._submission

    @property
    def vacation(self) -> AsyncVacationResponseClient:
        """VacationResponse/*, gated on the vacationresponse capability."""
        if self._vacation is None:
            self._vacation = AsyncVacationResponseClient(self._engine, self._context)
        return self._vacation

    @property
    def blob(self) -> AsyncBlobClient:
        """Blob/* and out-of-band upload and download."""
        if self._blob is None:
            self._blob = AsyncBlobClient(self._engine, self._context)
        return self._blob

    @property
    def principals(self) -> AsyncPrincipalClient:
        """Principal/*, gated on the principals capability."""
        if self._principals is None:
            self._principals = AsyncPrincipalClient(self._engine, self._context)
        return self._principals

    @property
    def share_notifications(self) -> AsyncShareNotificationClient:
        """ShareNotification/*, gated on the principals capability."""
        if self._share_notifications is None:
            self._share_notifications = AsyncShareNotificationClient(self._engine, self._context)
        return self._share_notifications

    @property
    def masked_email(self) -> AsyncMaskedEmailClient:
        """MaskedEmail/*, gated on Fastmail's masked email capability."""
        if self._masked_email is None:
            self._masked_email = AsyncMaskedEmailClient(self._engine, self._context)
        return self._masked_email
