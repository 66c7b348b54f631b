"""VacationResponse sub-client for the JMAP client (RFC 8621 §8).

This is an internal module. Import from `jmap_client` instead.
"""

from typing import Any, ClassVar

from jmap_client import capabilities
from jmap_client._base import AsyncEntityClient
from jmap_client.models import Entity

SINGLETON_ID = "singleton"


class VacationResponse(Entity):
    """The account's automatic out-of-office reply.

    There is exactly one per account, with id ``"singleton"``.

    Attributes:
        is_enabled: Whether replies are sent.
        from_date: Start of the reply window (UTC), open-ended if None.
        to_date: End of the reply window (UTC), open-ended if None.
    """

    is_enabled: bool = False
    from_date: str | None = None
    to_date: str | None = None
    subject: str | None = None
    text_body: str | None = None
    html_body: str | None = None


class AsyncVacationResponseClient(AsyncEntityClient[VacationResponse]):
    """Asynchronous client for VacationResponse/* methods."""

    _CAPABILITIES: ClassVar[tuple[str, ...]] = (capabilities.VACATION_RESPONSE,)
    _TYPE_NAME = "VacationResponse"
    _MODEL = VacationResponse

    async def get(self) -> VacationResponse:
        """Fetch the vacation response.

        Raises:
            NotFoundError: If the server returned none.
        """
        return await self._get_one(SINGLETON_ID)

    async def update(
        self,
        is_enabled: bool | None = None,
        from_date: str | None = None,
        to_date: str | None = None,
        subject: str | None = None,
        text_body: str | None = None,
        html_body: str | None = None,
    ) -> None:
        """Change the vacation response; unset arguments are left as they are.

        Raises:
            SetItemError: If the server rejected the update.
        """
        patch: dict[str, Any] = {}
        if is_enabled is not None:
            patch["isEnabled"] = is_enabled
        if from_date is not None:
            patch["fromDate"] = from_date
        if to_date is not None:
            patch["toDate"] = to_date
        if subject is not None:
            patch["subject"] = subject
        if text_body is not None:
            patch["textBody"] = text_body
        if html_body is not None:
            patch["htmlBody"] = html_body
        await self._update_one(SINGLETON_ID, patch)
