"""Email sub-client for the JMAP client (RFC 8621).

This module provides the Email, EmailImport and SearchSnippet models and
AsyncEmailClient for the Email/* and SearchSnippet/get methods.

This is an internal module. Import from `jmap_client` instead.
"""

import codecs
import logging
from typing import Any, ClassVar

from pydantic import Field

from jmap_client import capabilities
from jmap_client._base import AsyncEntityClient
from jmap_client._blob import AsyncBlobClient
from jmap_client.exceptions import InvalidResponseError, SetItemError
from jmap_client.models import (
    Comparator,
    Entity,
    Filter,
    FilterCondition,
    JMAPModel,
    QueryChangesResponse,
    SetResponse,
    filter_to_wire,
)

logger = logging.getLogger(__name__)

DEFAULT_SORT = [Comparator(property="receivedAt", is_ascending=False)]
DEFAULT_LIST_LIMIT = 50


# Models


class EmailAddress(JMAPModel):
    """A mailbox address with an optional display name."""

    name: str | None = None
    email: str


class EmailBodyPart(JMAPModel):
    """One MIME part of a message.

    Attributes:
        part_id: Identifier of the part within the message, used as the key
            of ``Email.body_values``.
        blob_id: Blob holding the decoded part content.
        type: Media type, e.g. ``"text/plain"``.
        sub_parts: Child parts of a multipart.
    """

    part_id: str | None = None
    blob_id: str | None = None
    size: int | None = None
    name: str | None = None
    type: str | None = None
    charset: str | None = None
    disposition: str | None = None
    cid: str | None = None
    language: list[str] | None = None
    location: str | None = None
    sub_parts: list["EmailBodyPart"] | None = None


class EmailBodyValue(JMAPModel):
    """Decoded text of a body part."""

    value: str
    is_encoding_problem: bool = False
    is_truncated: bool = False


class Email(Entity):
    """An email message.

    Only ``id`` is always present; the rest depends on the properties that
    were requested.

    Attributes:
        blob_id: Blob holding the raw RFC 5322 message.
        thread_id: The thread the message belongs to.
        mailbox_ids: Mailbox identifiers the message is in (values are true).
        keywords: Keywords such as ``$seen`` (values are true).
        received_at: When the message arrived, as an RFC 3339 string.
        from_: The ``From`` addresses (``from`` on the wire).
        body_values: Part identifier to decoded text.
    """

    blob_id: str | None = None
    thread_id: str | None = None
    mailbox_ids: dict[str, bool] | None = None
    keywords: dict[str, bool] | None = None
    size: int | None = None
    received_at: str | None = None
    message_id: list[str] | None = None
    in_reply_to: list[str] | None = None
    references: list[str] | None = None
    sender: list[EmailAddress] | None = None
    from_: list[EmailAddress] | None = Field(default=None, alias="from")
    to: list[EmailAddress] | None = None
    cc: list[EmailAddress] | None = None
    bcc: list[EmailAddress] | None = None
    reply_to: list[EmailAddress] | None = None
    subject: str | None = None
    sent_at: str | None = None
    has_attachment: bool | None = None
    preview: str | None = None
    body_structure: EmailBodyPart | None = None
    body_values: dict[str, EmailBodyValue] | None = None
    text_body: list[EmailBodyPart] | None = None
    html_body: list[EmailBodyPart] | None = None
    attachments: list[EmailBodyPart] | None = None

    @property
    def is_seen(self) -> bool:
        return bool(self.keywords and self.keywords.get("$seen"))

    @property
    def is_flagged(self) -> bool:
        return bool(self.keywords and self.keywords.get("$flagged"))


class ParsedEmail(Email):
    """An Email returned by Email/parse, which has no server identifier."""

    id: str | None = None  # type: ignore[assignment]


class EmailCreate(JMAPModel):
    """Properties for a new Email created through Email/set.

    Attributes:
        mailbox_ids: Mailboxes the message is placed in; at least one.
        body_values: Part identifier to text, referenced from the body parts.
    """

    mailbox_ids: dict[str, bool]
    keywords: dict[str, bool] | None = None
    from_: list[EmailAddress] | None = Field(default=None, alias="from")
    to: list[EmailAddress] | None = None
    cc: list[EmailAddress] | None = None
    bcc: list[EmailAddress] | None = None
    reply_to: list[EmailAddress] | None = None
    subject: str | None = None
    sent_at: str | None = None
    received_at: str | None = None
    in_reply_to: list[str] | None = None
    references: list[str] | None = None
    body_structure: EmailBodyPart | None = None
    body_values: dict[str, EmailBodyValue] | None = None
    text_body: list[EmailBodyPart] | None = None
    html_body: list[EmailBodyPart] | None = None
    attachments: list[EmailBodyPart] | None = None


class EmailImport(JMAPModel):
    """An RFC 5322 message blob to import with Email/import."""

    blob_id: str
    mailbox_ids: dict[str, bool]
    keywords: dict[str, bool] | None = None
    received_at: str | None = None


class EmailFilter(FilterCondition):
    """Leaf condition for Email/query (RFC 8621 §4.4.1)."""

    in_mailbox: str | None = None
    in_mailbox_other_than: list[str] | None = None
    before: str | None = None
    after: str | None = None
    min_size: int | None = None
    max_size: int | None = None
    all_in_thread_have_keyword: str | None = None
    some_in_thread_have_keyword: str | None = None
    none_in_thread_have_keyword: str | None = None
    has_keyword: str | None = None
    not_keyword: str | None = None
    has_attachment: bool | None = None
    text: str | None = None
    from_: str | None = Field(default=None, alias="from")
    to: str | None = None
    cc: str | None = None
    bcc: str | None = None
    subject: str | None = None
    body: str | None = None
    header: list[str] | None = None


class SearchSnippet(JMAPModel):
    """Highlighted fragments of an email matching a search filter."""

    email_id: str
    subject: str | None = None
    preview: str | None = None


EmailBodyPart.model_rebuild()


def _decode_body_value(data: bytes, charset: str | None) -> EmailBodyValue:
    """Decode downloaded part content, replacing bytes that do not decode."""
    encoding = charset or "utf-8"
    try:
        codecs.lookup(encoding)
    except LookupError:
        logger.warning("Unknown charset %r, decoding as UTF-8", charset)
        encoding = "utf-8"
    try:
        return EmailBodyValue(value=data.decode(encoding))
    except UnicodeDecodeError:
        return EmailBodyValue(
            value=data.decode(encoding, errors="replace"),
            is_encoding_problem=True,
        )


# Client


class AsyncEmailClient(AsyncEntityClient[Email]):
    """Asynchronous client for Email/* methods.

    Example:
        async with await AsyncJMAPClient.connect(token) as client:
            # Ten most recent emails in a mailbox
            inbox = await client.mailbox.resolve_id("Inbox")
            emails = await client.email.list(mailbox_id=inbox, limit=10)

            # Mark one as read
            await client.email.update(emails[0].id, keywords={"$seen": True})
    """

    _CAPABILITIES: ClassVar[tuple[str, ...]] = (capabilities.MAIL,)
    _TYPE_NAME = "Email"
    _MODEL = Email

    async def query(
        self,
        filter: Filter | None = None,
        sort: list[Comparator] | list[dict[str, Any]] | None = None,
        limit: int | None = None,
        position: int | None = None,
        collapse_threads: bool | None = None,
    ) -> list[str]:
        """Find emails matching a filter.

        Args:
            filter: An EmailFilter, a dictionary, or an AND/OR/NOT tree.
            sort: Sort order; newest received first when omitted.
            limit: Maximum number of identifiers to return.
            position: Zero-based index of the first identifier to return.
            collapse_threads: Return only one email per thread.

        Returns:
            Email identifiers in sort order.
        """
        return await self._query_ids(
            filter=filter,
            sort=sort if sort is not None else DEFAULT_SORT,
            limit=limit,
            position=position,
            collapseThreads=collapse_threads,
        )

    async def query_in_mailbox(self, mailbox_id: str, limit: int | None = None) -> list[str]:
        """Identifiers of the newest emails in a mailbox."""
        return await self.query(filter=EmailFilter(in_mailbox=mailbox_id), limit=limit)

    async def get(
        self,
        ids: list[str],
        properties: list[str] | None = None,
        body_properties: list[str] | None = None,
        fetch_text_body_values: bool | None = None,
        fetch_html_body_values: bool | None = None,
        fetch_all_body_values: bool | None = None,
        max_body_value_bytes: int | None = None,
    ) -> list[Email]:
        """Fetch emails by identifier.

        Args:
            ids: Email identifiers; an empty list performs no call.
            properties: Email properties to return; server default if unset.
            body_properties: Properties of each body part to return.
            fetch_text_body_values: Include ``body_values`` for text parts.
            fetch_html_body_values: Include ``body_values`` for HTML parts.
            fetch_all_body_values: Include ``body_values`` for all text parts.
            max_body_value_bytes: Truncate each body value to this size.

        Returns:
            Emails in the order the server returned them.
        """
        return await self._get_list(
            ids,
            properties,
            bodyProperties=body_properties,
            fetchTextBodyValues=fetch_text_body_values,
            fetchHTMLBodyValues=fetch_html_body_values,
            fetchAllBodyValues=fetch_all_body_values,
            maxBodyValueBytes=max_body_value_bytes,
        )

    async def get_one(self, id: str, properties: list[str] | None = None) -> Email:
        """Fetch one email.

        Raises:
            NotFoundError: If the email does not exist.
        """
        return await self._get_one(id, properties)

    async def get_with_body(self, id: str) -> Email:
        """Fetch one email with ``body_values`` filled for its text and HTML parts.

        Part contents are downloaded through the Session's download URL and
        decoded with the part's charset (UTF-8 when none is given). Bytes that
        do not decode are replaced and the value is flagged with
        ``is_encoding_problem``. When the Session has no download URL the
        email is returned as is.

        Raises:
            NotFoundError: If the email does not exist.
            TransportError: If a download fails.
        """
        email = await self._get_one(id)
        if not self._context.session.download_url:
            return email

        blob = AsyncBlobClient(self._engine, self._context)
        body_values: dict[str, EmailBodyValue] = {}
        for part in [*(email.html_body or []), *(email.text_body or [])]:
            if not part.blob_id or not part.part_id or part.part_id in body_values:
                continue
            data = await blob.download(part.blob_id, part.type or "text/plain", "email")
            body_values[part.part_id] = _decode_body_value(data, part.charset)

        if not body_values:
            return email
        return email.model_copy(update={"body_values": body_values})

    async def create(self, email: EmailCreate | dict[str, Any]) -> Email:
        """Create an email, e.g. a draft.

        Returns:
            The server-set properties of the new email (``id``, ``blob_id``,
            ``thread_id``, ``size``).

        Raises:
            SetItemError: If the server rejected the email.
        """
        return await self._create_one(email)

    async def update(
        self,
        id: str,
        mailbox_ids: dict[str, bool] | None = None,
        keywords: dict[str, bool] | None = None,
    ) -> None:
        """Replace an email's mailboxes and/or keywords.

        Only these two properties of an email are mutable.

        Raises:
            SetItemError: If the server rejected the update.
        """
        patch: dict[str, Any] = {}
        if mailbox_ids is not None:
            patch["mailboxIds"] = mailbox_ids
        if keywords is not None:
            patch["keywords"] = keywords
        await self._update_one(id, patch)

    async def delete(self, ids: list[str]) -> None:
        """Destroy emails; an empty list performs no call.

        Raises:
            SetItemError: If the server refused to destroy one of them.
        """
        await self._destroy(ids)

    async def set(
        self,
        create: dict[str, EmailCreate | dict[str, Any]] | None = None,
        update: dict[str, dict[str, Any]] | None = None,
        destroy: list[str] | None = None,
        if_in_state: str | None = None,
    ) -> SetResponse[Email]:
        """Call Email/set with any combination of creates, patches and destroys."""
        return await self._set(create, update, destroy, ifInState=if_in_state)

    async def import_email(self, email: EmailImport) -> Email:
        """Import a message blob as an email.

        Raises:
            SetItemError: If the server rejected the import.
        """
        key = "import1"
        arguments = self._args(emails={key: email.to_wire()})
        data = await self._call("Email/import", arguments)
        response = self._parse(SetResponse[Email], "Email/import", data)
        if key in response.not_created:
            raise SetItemError("Email/import", key, response.not_created[key])
        if key not in response.created:
            raise InvalidResponseError("No imported email in response")
        return response.created[key]

    async def copy(
        self,
        from_account_id: str,
        ids: list[str],
        mailbox_ids: dict[str, bool],
    ) -> SetResponse[Email]:
        """Copy emails from another account into the working account.

        Args:
            from_account_id: The source account.
            ids: Emails to copy, also used as creation keys.
            mailbox_ids: Mailboxes in the working account to place them in.

        Returns:
            ``created`` and ``not_created`` keyed by source email identifier.
        """
        create = {id: {"id": id, "mailboxIds": mailbox_ids} for id in ids}
        arguments = self._args(fromAccountId=from_account_id, create=create)
        data = await self._call("Email/copy", arguments)
        return self._parse(SetResponse[Email], "Email/copy", data)

    async def parse(
        self,
        blob_ids: list[str],
        properties: list[str] | None = None,
        body_properties: list[str] | None = None,
        fetch_text_body_values: bool | None = None,
        fetch_html_body_values: bool | None = None,
        fetch_all_body_values: bool | None = None,
        max_body_value_bytes: int | None = None,
    ) -> dict[str, ParsedEmail]:
        """Parse message blobs without storing them.

        Returns:
            Blob identifier to parsed email. Blobs that could not be parsed
            are absent.
        """
        arguments = self._args(
            blobIds=list(blob_ids),
            properties=properties,
            bodyProperties=body_properties,
            fetchTextBodyValues=fetch_text_body_values,
            fetchHTMLBodyValues=fetch_html_body_values,
            fetchAllBodyValues=fetch_all_body_values,
            maxBodyValueBytes=max_body_value_bytes,
        )
        data = await self._call("Email/parse", arguments)
        parsed = data.get("parsed")
        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise InvalidResponseError("Invalid Email/parse response")
        return {
            blob_id: self._parse(ParsedEmail, "Email/parse", value)
            for blob_id, value in parsed.items()
        }

    async def query_changes(
        self,
        since_query_state: str,
        filter: Filter | None = None,
        sort: list[Comparator] | list[dict[str, Any]] | None = None,
        max_changes: int | None = None,
    ) -> QueryChangesResponse:
        """Changes to a query's results since ``since_query_state``.

        ``filter`` and ``sort`` must match the original query.
        """
        return await self._query_changes(
            since_query_state,
            filter=filter,
            sort=sort if sort is not None else DEFAULT_SORT,
            max_changes=max_changes,
        )

    async def search_snippets(
        self,
        email_ids: list[str],
        filter: Filter | None = None,
    ) -> list[SearchSnippet]:
        """Fetch highlighted subject and preview fragments for a search.

        Args:
            email_ids: Emails to produce snippets for; an empty list performs
                no call.
            filter: The search filter to highlight matches of.
        """
        if not email_ids:
            return []

        arguments = self._args(
            filter=filter_to_wire(filter) if filter is not None else None,
            emailIds=list(email_ids),
        )
        data = await self._call("SearchSnippet/get", arguments)
        items = data.get("list")
        if not isinstance(items, list):
            raise InvalidResponseError("Invalid SearchSnippet/get response: no list")
        return [self._parse(SearchSnippet, "SearchSnippet/get", item) for item in items]

    async def list(
        self,
        mailbox_id: str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
        properties: list[str] | None = None,
    ) -> list[Email]:
        """Newest emails, optionally within one mailbox.

        Composes Email/query and Email/get.
        """
        filter = EmailFilter(in_mailbox=mailbox_id) if mailbox_id else None
        ids = await self.query(filter=filter, limit=limit)
        return await self.get(ids, properties=properties)
