"""Identity and EmailSubmission sub-clients for the JMAP client (RFC 8621 §6-7).

Both data types belong to the submission capability, and every call also
declares the mail capability.

This is an internal module. Import from `jmap_client` instead.
"""

from typing import Any, ClassVar, Literal

from jmap_client import capabilities
from jmap_client._base import AsyncEntityClient
from jmap_client._email import EmailAddress
from jmap_client.models import Entity, JMAPModel

SUBMISSION_CAPABILITIES = (capabilities.MAIL, capabilities.SUBMISSION)

UndoStatus = Literal["pending", "final", "canceled"]


class Identity(Entity):
    """An address the user may send from.

    Attributes:
        email: The From address; may be a ``*@domain`` wildcard.
        may_delete: Whether the user may destroy this identity.
    """

    name: str | None = None
    email: str | None = None
    reply_to: list[EmailAddress] | None = None
    bcc: list[EmailAddress] | None = None
    text_signature: str | None = None
    html_signature: str | None = None
    may_delete: bool | None = None


class SubmissionAddress(JMAPModel):
    """An SMTP envelope address with optional parameters."""

    email: str
    parameters: dict[str, Any] | None = None


class Envelope(JMAPModel):
    """The SMTP envelope used to send an email."""

    mail_from: SubmissionAddress
    rcpt_to: list[SubmissionAddress]


class EmailSubmission(Entity):
    """An email sent, or scheduled to be sent.

    Attributes:
        identity_id: The identity the email is sent as.
        email_id: The email being sent.
        undo_status: ``"pending"`` while the send can still be canceled.
        delivery_status: Recipient address to delivery information.
    """

    identity_id: str | None = None
    email_id: str | None = None
    thread_id: str | None = None
    envelope: Envelope | None = None
    send_at: str | None = None
    undo_status: UndoStatus | None = None
    delivery_status: dict[str, Any] | None = None
    dsn_blob_ids: list[str] | None = None
    mdn_blob_ids: list[str] | None = None


class AsyncIdentityClient(AsyncEntityClient[Identity]):
    """Asynchronous client for Identity/* methods."""

    _CAPABILITIES: ClassVar[tuple[str, ...]] = SUBMISSION_CAPABILITIES
    _TYPE_NAME = "Identity"
    _MODEL = Identity

    async def get_all(self) -> list[Identity]:
        """Fetch every identity of the account."""
        return await self._get_list(None)


class AsyncEmailSubmissionClient(AsyncEntityClient[EmailSubmission]):
    """Asynchronous client for EmailSubmission/* methods.

    Example:
        async with await AsyncJMAPClient.connect(token) as client:
            identity = (await client.identity.get_all())[0]
            submission = await client.submission.create(identity.id, draft.id)
            await client.submission.cancel(submission.id)
    """

    _CAPABILITIES: ClassVar[tuple[str, ...]] = SUBMISSION_CAPABILITIES
    _TYPE_NAME = "EmailSubmission"
    _MODEL = EmailSubmission

    async def create(
        self,
        identity_id: str,
        email_id: str,
        envelope: Envelope | None = None,
        on_success_update_email: dict[str, dict[str, Any]] | None = None,
    ) -> EmailSubmission:
        """Send an email.

        Args:
            identity_id: Identity to send as.
            email_id: The email to send.
            envelope: Explicit SMTP envelope; derived from the headers when
                omitted.
            on_success_update_email: Email patches to apply once the
                submission is created, keyed by email id or ``"#sub"``.

        Raises:
            SetItemError: If the server rejected the submission.
        """
        payload: dict[str, Any] = {"identityId": identity_id, "emailId": email_id}
        if envelope is not None:
            payload["envelope"] = envelope.to_wire()

        return await self._create_one(
            payload,
            key="sub",
            onSuccessUpdateEmail=on_success_update_email,
        )

    async def get(self, ids: list[str]) -> list[EmailSubmission]:
        """Fetch submissions by identifier; an empty list performs no call."""
        return await self._get_list(ids)

    async def cancel(self, id: str) -> None:
        """Cancel a pending submission.

        Raises:
            SetItemError: If the submission can no longer be canceled.
        """
        await self._update_one(id, {"undoStatus": "canceled"})
