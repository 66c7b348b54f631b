"""Mailbox sub-client for the JMAP client (RFC 8621 §2).

This is an internal module. Import from `jmap_client` instead.
"""

from typing import Any, ClassVar

from jmap_client import capabilities
from jmap_client._base import AsyncEntityClient
from jmap_client.exceptions import NotFoundError, SetItemError
from jmap_client.models import (
    Comparator,
    Entity,
    Filter,
    FilterCondition,
    JMAPModel,
    SetResponse,
)

# Marks an update argument that was not passed, as distinct from None.
UNSET: Any = object()


class MailboxRights(JMAPModel):
    """The user's permissions on a mailbox."""

    may_read_items: bool = False
    may_add_items: bool = False
    may_remove_items: bool = False
    may_set_seen: bool = False
    may_set_keywords: bool = False
    may_create_child: bool = False
    may_rename: bool = False
    may_delete: bool = False
    may_submit: bool = False


class Mailbox(Entity):
    """A named container of emails.

    Attributes:
        name: Display name, unique among siblings.
        parent_id: Parent mailbox, None at the top level.
        role: Well-known purpose such as ``"inbox"`` or ``"trash"``.
        sort_order: Position hint among siblings.
        my_rights: The user's permissions.
    """

    name: str | None = None
    parent_id: str | None = None
    role: str | None = None
    sort_order: int | None = None
    total_emails: int | None = None
    unread_emails: int | None = None
    total_threads: int | None = None
    unread_threads: int | None = None
    my_rights: MailboxRights | None = None
    is_subscribed: bool | None = None


class MailboxFilter(FilterCondition):
    """Leaf condition for Mailbox/query."""

    parent_id: str | None = None
    name: str | None = None
    role: str | None = None
    has_any_role: bool | None = None
    is_subscribed: bool | None = None


class AsyncMailboxClient(AsyncEntityClient[Mailbox]):
    """Asynchronous client for Mailbox/* methods.

    Example:
        async with await AsyncJMAPClient.connect(token) as client:
            archive = await client.mailbox.create("Archive/2024")
            for mailbox in await client.mailbox.list(name_contains="arch"):
                print(mailbox.name, mailbox.total_emails)
    """

    _CAPABILITIES: ClassVar[tuple[str, ...]] = (capabilities.MAIL,)
    _TYPE_NAME = "Mailbox"
    _MODEL = Mailbox

    async def get_all(self, properties: list[str] | None = None) -> list[Mailbox]:
        """Fetch every mailbox in the account."""
        return await self._get_list(None, properties)

    async def get(self, ids: list[str], properties: list[str] | None = None) -> list[Mailbox]:
        """Fetch mailboxes by identifier; an empty list performs no call."""
        return await self._get_list(ids, properties)

    async def query(
        self,
        filter: Filter | None = None,
        sort: list[Comparator] | list[dict[str, Any]] | None = None,
        limit: int | None = None,
        sort_as_tree: bool | None = None,
        filter_as_tree: bool | None = None,
    ) -> list[str]:
        """Find mailboxes matching a filter.

        Returns:
            Mailbox identifiers in sort order.
        """
        return await self._query_ids(
            filter=filter,
            sort=sort,
            limit=limit,
            sortAsTree=sort_as_tree,
            filterAsTree=filter_as_tree,
        )

    async def query_and_get(
        self,
        filter: Filter | None = None,
        sort: list[Comparator] | list[dict[str, Any]] | None = None,
        limit: int | None = None,
    ) -> list[Mailbox]:
        """Mailbox/query followed by Mailbox/get on the result."""
        ids = await self.query(filter=filter, sort=sort, limit=limit)
        return await self.get(ids)

    async def resolve_id(self, name: str) -> str:
        """Identifier of the mailbox with the given name.

        Falls back to a case-insensitive match on the mailbox role, so
        ``"inbox"`` finds the inbox whatever it is called.

        Raises:
            NotFoundError: If no mailbox matches.
        """
        mailboxes = await self.get_all()
        for mailbox in mailboxes:
            if mailbox.name == name:
                return mailbox.id
        for mailbox in mailboxes:
            if mailbox.role and mailbox.role.lower() == name.lower():
                return mailbox.id
        raise NotFoundError("Mailbox", name)

    async def create(
        self,
        name: str,
        parent_id: str | None = None,
        is_subscribed: bool | None = None,
    ) -> Mailbox:
        """Create a mailbox.

        The server may only echo the new identifier; the returned Mailbox
        carries the name and parent that were requested.

        Raises:
            SetItemError: If the server rejected the mailbox.
        """
        payload: dict[str, Any] = {"name": name}
        if parent_id is not None:
            payload["parentId"] = parent_id
        if is_subscribed is not None:
            payload["isSubscribed"] = is_subscribed

        created = await self._create_one(payload)
        return created.model_copy(
            update={
                "name": created.name or name,
                "parent_id": created.parent_id or parent_id,
            }
        )

    async def update(
        self,
        id: str,
        name: str | None = None,
        parent_id: str | None = UNSET,
        is_subscribed: bool | None = None,
        sort_order: int | None = None,
    ) -> None:
        """Change a mailbox's properties.

        Args:
            id: The mailbox to change.
            name: New name.
            parent_id: New parent; pass None to move to the top level.
            is_subscribed: New subscription state.
            sort_order: New position hint.

        Raises:
            SetItemError: If the server rejected the update.
        """
        patch: dict[str, Any] = {}
        if name is not None:
            patch["name"] = name
        if parent_id is not UNSET:
            patch["parentId"] = parent_id
        if is_subscribed is not None:
            patch["isSubscribed"] = is_subscribed
        if sort_order is not None:
            patch["sortOrder"] = sort_order
        await self._update_one(id, patch)

    async def delete(self, id: str, on_destroy_remove_emails: bool = False) -> None:
        """Destroy a mailbox.

        Args:
            id: The mailbox to destroy.
            on_destroy_remove_emails: Also destroy emails only in this
                mailbox; otherwise the server refuses with
                ``mailboxHasEmail`` when it is not empty.

        Raises:
            SetItemError: If the server refused.
        """
        response = await self._set(
            destroy=[id],
            onDestroyRemoveEmails=on_destroy_remove_emails or None,
        )
        if id in response.not_destroyed:
            raise SetItemError("Mailbox/set", id, response.not_destroyed[id])

    async def set(
        self,
        create: dict[str, dict[str, Any]] | None = None,
        update: dict[str, dict[str, Any]] | None = None,
        destroy: list[str] | None = None,
        on_destroy_remove_emails: bool | None = None,
        if_in_state: str | None = None,
    ) -> SetResponse[Mailbox]:
        """Call Mailbox/set with any combination of creates, patches and destroys."""
        return await self._set(
            create,
            update,
            destroy,
            onDestroyRemoveEmails=on_destroy_remove_emails,
            ifInState=if_in_state,
        )

    async def list(self, name_contains: str | None = None) -> list[Mailbox]:
        """Every mailbox, optionally only those whose name contains a substring.

        The match is case-insensitive and applied locally.
        """
        mailboxes = await self.get_all()
        if name_contains is None:
            return mailboxes
        pattern = name_contains.lower()
        return [m for m in mailboxes if m.name and pattern in m.name.lower()]
