"""MaskedEmail sub-client for Fastmail's masked email extension.

A masked email is a generated address that forwards to the user's inbox
and can be disabled or deleted per site.

This is an internal module. Import from `jmap_client` instead.
"""

from enum import Enum
from typing import Any, ClassVar

from jmap_client import capabilities
from jmap_client._base import AsyncEntityClient
from jmap_client.models import Entity, SetResponse


class MaskedEmailState(str, Enum):
    """Lifecycle state of a masked email.

    ``pending`` addresses become ``enabled`` once they receive mail, and are
    deleted automatically if they never do.
    """

    PENDING = "pending"
    ENABLED = "enabled"
    DISABLED = "disabled"
    DELETED = "deleted"


class MaskedEmail(Entity):
    """A masked email address.

    Attributes:
        email: The generated address.
        state: Lifecycle state.
        for_domain: Origin of the site the address was made for.
        description: Free-text note.
        last_message_at: When mail was last received, if ever.
        created_by: Name of the client that created the address.
        url: Deep link to the address in the site's own account page.
    """

    email: str | None = None
    state: MaskedEmailState | None = None
    for_domain: str | None = None
    description: str | None = None
    last_message_at: str | None = None
    created_at: str | None = None
    created_by: str | None = None
    url: str | None = None


class AsyncMaskedEmailClient(AsyncEntityClient[MaskedEmail]):
    """Asynchronous client for MaskedEmail/* methods.

    Example:
        async with await AsyncJMAPClient.connect(token) as client:
            masked = await client.masked_email.create(
                for_domain="https://shop.example.com",
                description="Shop newsletter",
            )
            await client.masked_email.disable(masked.id)
    """

    _CAPABILITIES: ClassVar[tuple[str, ...]] = (capabilities.MASKED_EMAIL,)
    _TYPE_NAME = "MaskedEmail"
    _MODEL = MaskedEmail

    async def get_all(self) -> list[MaskedEmail]:
        """Fetch every masked email of the account."""
        return await self._get_list(None)

    async def get(self, ids: list[str]) -> list[MaskedEmail]:
        """Fetch masked emails by identifier; an empty list performs no call."""
        return await self._get_list(ids)

    async def create(
        self,
        for_domain: str,
        description: str,
        email_prefix: str | None = None,
        state: MaskedEmailState | None = None,
        url: str | None = None,
    ) -> MaskedEmail:
        """Generate a new masked email.

        Args:
            for_domain: Origin of the site the address is for.
            description: Free-text note.
            email_prefix: Requested start of the generated address.
            state: Initial state; the server creates it ``pending`` when
                omitted.
            url: Deep link to store with the address.

        Returns:
            The new address.

        Raises:
            SetItemError: If the server rejected the create.
        """
        payload: dict[str, Any] = {"forDomain": for_domain, "description": description}
        if email_prefix is not None:
            payload["emailPrefix"] = email_prefix
        if state is not None:
            payload["state"] = MaskedEmailState(state).value
        if url is not None:
            payload["url"] = url

        created = await self._create_one(payload)
        return created.model_copy(
            update={
                "for_domain": created.for_domain or for_domain,
                "description": created.description
                if created.description is not None
                else description,
            }
        )

    async def update(
        self,
        id: str,
        for_domain: str | None = None,
        description: str | None = None,
        state: MaskedEmailState | None = None,
        url: str | None = None,
    ) -> None:
        """Change a masked email; unset arguments are left as they are.

        Raises:
            SetItemError: If the server rejected the update.
        """
        patch: dict[str, Any] = {}
        if for_domain is not None:
            patch["forDomain"] = for_domain
        if description is not None:
            patch["description"] = description
        if state is not None:
            patch["state"] = MaskedEmailState(state).value
        if url is not None:
            patch["url"] = url
        await self._update_one(id, patch)

    async def set_state(self, id: str, state: MaskedEmailState | str) -> None:
        """Move a masked email to another lifecycle state.

        Raises:
            ValueError: If ``state`` is not a known state.
            SetItemError: If the server rejected the change.
        """
        await self._update_one(id, {"state": MaskedEmailState(state).value})

    async def enable(self, id: str) -> None:
        await self.set_state(id, MaskedEmailState.ENABLED)

    async def disable(self, id: str) -> None:
        await self.set_state(id, MaskedEmailState.DISABLED)

    async def delete(self, id: str) -> None:
        """Mark a masked email deleted.

        Deleted addresses are kept by the server and can be re-enabled.
        """
        await self.set_state(id, MaskedEmailState.DELETED)

    async def set(
        self,
        create: dict[str, dict[str, Any]] | None = None,
        update: dict[str, dict[str, Any]] | None = None,
        destroy: list[str] | None = None,
    ) -> SetResponse[MaskedEmail]:
        """Call MaskedEmail/set with any combination of creates, patches and destroys."""
        return await self._set(create, update, destroy)
