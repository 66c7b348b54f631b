"""Principal and ShareNotification sub-clients (RFC 9670).

Principals are the users, groups and resources of a server that data can
be shared with. ShareNotifications record changes to what has been shared
with the user. Both are gated on the principals capability.

This is an internal module. Import from `jmap_client` instead.
"""

from typing import Any, ClassVar, Literal

from jmap_client import capabilities
from jmap_client._base import AsyncEntityClient
from jmap_client.models import Comparator, Entity, Filter, FilterCondition, JMAPModel

PrincipalType = Literal["individual", "group", "resource", "location", "other"]


class Principal(Entity):
    """A user, group or resource on the server.

    Attributes:
        type: What kind of principal this is.
        capabilities: Capability URI to principal-specific data, e.g. the
            calendar scheduling address.
        accounts: Account identifier to account data, for the accounts the
            user can access that belong to this principal.
    """

    type: PrincipalType | None = None
    name: str | None = None
    description: str | None = None
    email: str | None = None
    time_zone: str | None = None
    capabilities: dict[str, Any] | None = None
    accounts: dict[str, Any] | None = None


class PrincipalFilter(FilterCondition):
    """Leaf condition for Principal/query."""

    account_ids: list[str] | None = None
    email: str | None = None
    name: str | None = None
    text: str | None = None
    type: PrincipalType | None = None
    time_zone: str | None = None


class ChangedBy(JMAPModel):
    """Who made a sharing change."""

    name: str
    email: str | None = None
    principal_id: str | None = None


class ShareNotification(Entity):
    """A change to the user's access rights on a shared object.

    Attributes:
        created: When the change happened.
        object_type: Data type of the shared object, e.g. ``"Calendar"``.
        old_rights: Rights before the change, None if newly shared.
        new_rights: Rights after the change, None if unshared.
    """

    created: str | None = None
    changed_by: ChangedBy | None = None
    object_type: str | None = None
    object_account_id: str | None = None
    object_id: str | None = None
    old_rights: dict[str, bool] | None = None
    new_rights: dict[str, bool] | None = None
    name: str | None = None


class ShareNotificationFilter(FilterCondition):
    """Leaf condition for ShareNotification/query."""

    after: str | None = None
    before: str | None = None
    object_type: str | None = None
    object_account_id: str | None = None


class AsyncPrincipalClient(AsyncEntityClient[Principal]):
    """Asynchronous client for Principal/* methods.

    Example:
        async with await AsyncJMAPClient.connect(token) as client:
            if client.has_principals_capability():
                people = await client.principals.query_and_get(
                    filter=PrincipalFilter(type="individual"), limit=20,
                )
    """

    _CAPABILITIES: ClassVar[tuple[str, ...]] = (capabilities.PRINCIPALS,)
    _TYPE_NAME = "Principal"
    _MODEL = Principal

    async def get(self, ids: list[str], properties: list[str] | None = None) -> list[Principal]:
        """Fetch principals by identifier; an empty list performs no call."""
        return await self._get_list(ids, properties)

    async def get_one(self, id: str, properties: list[str] | None = None) -> Principal:
        """Fetch one principal.

        Raises:
            NotFoundError: If the principal does not exist.
        """
        return await self._get_one(id, properties)

    async def query(
        self,
        filter: Filter | None = None,
        sort: list[Comparator] | list[dict[str, Any]] | None = None,
        limit: int | None = None,
    ) -> list[str]:
        """Find principals matching a filter; returns identifiers."""
        return await self._query_ids(filter=filter, sort=sort, limit=limit)

    async def query_and_get(
        self,
        filter: Filter | None = None,
        sort: list[Comparator] | list[dict[str, Any]] | None = None,
        limit: int | None = None,
    ) -> list[Principal]:
        """Principal/query followed by Principal/get on the result."""
        ids = await self.query(filter=filter, sort=sort, limit=limit)
        return await self.get(ids)


class AsyncShareNotificationClient(AsyncEntityClient[ShareNotification]):
    """Asynchronous client for ShareNotification/* methods.

    Notifications cannot be created or changed by the client; they can only
    be dismissed.
    """

    _CAPABILITIES: ClassVar[tuple[str, ...]] = (capabilities.PRINCIPALS,)
    _TYPE_NAME = "ShareNotification"
    _MODEL = ShareNotification

    async def get(
        self,
        ids: list[str],
        properties: list[str] | None = None,
    ) -> list[ShareNotification]:
        """Fetch notifications by identifier; an empty list performs no call."""
        return await self._get_list(ids, properties)

    async def query(
        self,
        filter: Filter | None = None,
        sort: list[Comparator] | list[dict[str, Any]] | None = None,
        limit: int | None = None,
    ) -> list[str]:
        """Find notifications matching a filter; returns identifiers."""
        return await self._query_ids(filter=filter, sort=sort, limit=limit)

    async def query_and_get(
        self,
        filter: Filter | None = None,
        sort: list[Comparator] | list[dict[str, Any]] | None = None,
        limit: int | None = None,
    ) -> list[ShareNotification]:
        """ShareNotification/query followed by ShareNotification/get."""
        ids = await self.query(filter=filter, sort=sort, limit=limit)
        return await self.get(ids)

    async def dismiss(self, ids: list[str]) -> None:
        """Destroy notifications; an empty list performs no call.

        Raises:
            SetItemError: If the server refused to destroy one of them.
        """
        await self._destroy(ids)
