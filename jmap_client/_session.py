"""Session bootstrap and capability lookups.

This module fetches the Session document, selects the working account and
answers capability questions about it. Capability lookups are pure reads of
the stored Session and never touch the network.

This is an internal module and should not be imported directly by users.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from jmap_client import capabilities
from jmap_client._http import Transport
from jmap_client.exceptions import CapabilityError, MalformedSessionError, NoAccountError
from jmap_client.models import (
    AccountData,
    BlobCapability,
    CoreCapability,
    PrincipalsCapability,
    PrincipalsOwnerCapability,
    Session,
)

logger = logging.getLogger(__name__)

FASTMAIL_SESSION_URL = "https://api.fastmail.com/jmap/session"


def parse_session(body: bytes) -> Session:
    """Parse a Session document.

    Args:
        body: Raw response bytes from the session endpoint.

    Returns:
        The parsed Session.

    Raises:
        MalformedSessionError: If the body is not JSON or lacks ``apiUrl``
            or ``accounts``.
    """
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedSessionError(f"Session is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedSessionError("Session is not a JSON object")

    missing = [key for key in ("apiUrl", "accounts") if key not in data]
    if missing:
        raise MalformedSessionError(f"Session is missing required fields: {', '.join(missing)}")

    try:
        return Session.model_validate(data)
    except PydanticValidationError as e:
        raise MalformedSessionError(f"Session could not be parsed: {e}") from e


async def fetch_session(transport: Transport, session_url: str = FASTMAIL_SESSION_URL) -> Session:
    """GET and parse the Session document.

    Raises:
        TransportError: If the request fails.
        MalformedSessionError: If the document cannot be parsed.
    """
    logger.info("Fetching JMAP session from %s", session_url)
    body = await transport.get(session_url, b"")
    return parse_session(body)


def select_account(session: Session) -> str:
    """Choose the working account.

    Prefers the first account flagged ``isPersonal``; otherwise takes the
    first account in document order.

    Raises:
        NoAccountError: If the session has no accounts.
    """
    if not session.accounts:
        raise NoAccountError()

    for account_id, data in session.accounts.items():
        if data.is_personal:
            return account_id

    return next(iter(session.accounts))


class SessionContext:
    """The stored Session plus the selected account.

    Read-only after construction and shared by every sub-client.

    Attributes:
        session: The Session document.
        account_id: Identifier of the working account.
    """

    def __init__(self, session: Session, account_id: str | None = None) -> None:
        """Initialize the context.

        Args:
            session: The Session document.
            account_id: Account to use; selected automatically when omitted.

        Raises:
            NoAccountError: If no account can be selected, or ``account_id``
                is not in the session.
        """
        if account_id is None:
            account_id = select_account(session)
        elif account_id not in session.accounts:
            raise NoAccountError(f"Account not in session: {account_id}")

        self.session = session
        self.account_id = account_id
        logger.info("Using JMAP account %s", account_id)

    @property
    def account(self) -> AccountData:
        return self.session.accounts[self.account_id]

    @property
    def api_url(self) -> str:
        return self.session.api_url

    def has_capability(self, uri: str) -> bool:
        """Whether the working account advertises the capability."""
        return uri in self.account.account_capabilities

    def capability(self, uri: str) -> Any:
        """The raw capability value for the working account, or None."""
        return self.account.account_capabilities.get(uri)

    def require(self, *uris: str) -> None:
        """Assert the working account advertises every given capability.

        The core capability is server-wide and always implied.

        Raises:
            CapabilityError: For the first capability not advertised.
        """
        for uri in uris:
            if uri == capabilities.CORE:
                continue
            if not self.has_capability(uri):
                raise CapabilityError(uri, account_id=self.account_id)

    @property
    def core(self) -> CoreCapability:
        return self.session.core_capability

    def blob_capability(self) -> BlobCapability | None:
        value = self.capability(capabilities.BLOB)
        if value is None:
            return None
        return BlobCapability.model_validate(value if isinstance(value, dict) else {})

    def principals_capability(self) -> PrincipalsCapability | None:
        value = self.capability(capabilities.PRINCIPALS)
        if value is None:
            return None
        return PrincipalsCapability.model_validate(value if isinstance(value, dict) else {})

    def owner_capability(self) -> PrincipalsOwnerCapability | None:
        value = self.capability(capabilities.PRINCIPALS_OWNER)
        if value is None:
            return None
        return PrincipalsOwnerCapability.model_validate(value if isinstance(value, dict) else {})
