"""Thread sub-client for the JMAP client (RFC 8621 §3).

This is an internal module. Import from `jmap_client` instead.
"""

from typing import ClassVar

from pydantic import Field

from jmap_client import capabilities
from jmap_client._base import AsyncEntityClient
from jmap_client.models import Entity


class Thread(Entity):
    """A conversation: the emails of a thread, oldest first."""

    email_ids: list[str] = Field(default_factory=list)


class AsyncThreadClient(AsyncEntityClient[Thread]):
    """Asynchronous client for Thread/* methods."""

    _CAPABILITIES: ClassVar[tuple[str, ...]] = (capabilities.MAIL,)
    _TYPE_NAME = "Thread"
    _MODEL = Thread

    async def get(self, ids: list[str]) -> list[Thread]:
        """Fetch threads by identifier; an empty list performs no call."""
        return await self._get_list(ids)
