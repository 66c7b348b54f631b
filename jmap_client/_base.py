"""Base class for all typed sub-clients.

This module provides the base class that every data-type sub-client
inherits from. It gives access to the shared invocation engine and session
context, asserts capabilities before any call, and implements the four
standard method shapes (/get, /query, /set, /changes) once so that each
sub-client only translates parameters and picks the entity model.

This is an internal module and should not be imported directly by users.
"""

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from pydantic import ValidationError as PydanticValidationError

from jmap_client import capabilities
from jmap_client.exceptions import InvalidResponseError, NotFoundError, SetItemError
from jmap_client.models import (
    ChangesResponse,
    Comparator,
    Entity,
    Filter,
    GetResponse,
    QueryChangesResponse,
    QueryResponse,
    SetResponse,
    filter_to_wire,
    sort_to_wire,
)

if TYPE_CHECKING:
    from jmap_client._engine import InvocationEngine
    from jmap_client._session import SessionContext

EntityT = TypeVar("EntityT", bound=Entity)
ModelT = TypeVar("ModelT")


class AsyncBaseClient:
    """Base class for sub-clients that issue method calls.

    Attributes:
        _engine: The shared invocation engine.
        _context: The shared session context.
    """

    # Capabilities every call of this sub-client needs, besides core.
    _CAPABILITIES: ClassVar[tuple[str, ...]] = ()

    def __init__(self, engine: "InvocationEngine", context: "SessionContext") -> None:
        """Initialize the sub-client.

        Args:
            engine: The shared invocation engine.
            context: The shared session context.
        """
        self._engine = engine
        self._context = context

    @property
    def account_id(self) -> str:
        return self._context.account_id

    def _using(self) -> list[str]:
        return capabilities.using_for(*self._CAPABILITIES)

    def _args(self, **kwargs: Any) -> dict[str, Any]:
        """Build method arguments with ``accountId`` set and None values dropped."""
        arguments: dict[str, Any] = {"accountId": self._context.account_id}
        arguments.update({key: value for key, value in kwargs.items() if value is not None})
        return arguments

    async def _call(self, method: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """Assert this sub-client's capabilities, then call the method.

        Raises:
            CapabilityError: Before any I/O, if a capability is missing.
        """
        self._context.require(*self._CAPABILITIES)
        return await self._engine.call_method(self._using(), method, arguments)

    @staticmethod
    def _parse(model: type[ModelT], method: str, data: Any) -> ModelT:
        """Validate a result into a model.

        Raises:
            InvalidResponseError: If the result does not fit the model.
        """
        try:
            return model.model_validate(data)  # type: ignore[attr-defined]
        except PydanticValidationError as e:
            raise InvalidResponseError(f"Invalid {method} response: {e}") from e


class AsyncEntityClient(AsyncBaseClient, Generic[EntityT]):
    """Sub-client for a data type supporting the standard methods.

    Subclasses set ``_TYPE_NAME`` (e.g. ``"Mailbox"``) and ``_MODEL``.
    """

    _TYPE_NAME: ClassVar[str] = ""
    _MODEL: ClassVar[type[Entity]] = Entity

    def _method(self, name: str) -> str:
        return f"{self._TYPE_NAME}/{name}"

    async def _get(
        self,
        ids: list[str] | None,
        properties: list[str] | None = None,
        **extra: Any,
    ) -> GetResponse[EntityT]:
        """Call ``Type/get``.

        ``ids=None`` fetches every record. An empty list short-circuits to
        an empty result without a network call.
        """
        if ids is not None and not ids:
            return GetResponse[self._MODEL](account_id=self.account_id)  # type: ignore[name-defined]

        arguments = self._args(properties=properties, **extra)
        arguments["ids"] = list(ids) if ids is not None else None
        method = self._method("get")
        data = await self._call(method, arguments)
        if not isinstance(data.get("list"), list):
            raise InvalidResponseError(f"Invalid {method} response: no list")
        return self._parse(GetResponse[self._MODEL], method, data)  # type: ignore[name-defined]

    async def _get_list(
        self,
        ids: list[str] | None,
        properties: list[str] | None = None,
        **extra: Any,
    ) -> list[EntityT]:
        response = await self._get(ids, properties, **extra)
        return response.items

    async def _get_one(self, id: str, properties: list[str] | None = None, **extra: Any) -> EntityT:
        """Fetch a single record.

        Raises:
            NotFoundError: If the server does not return it.
        """
        for item in await self._get_list([id], properties, **extra):
            if item.id == id:
                return item
        raise NotFoundError(self._TYPE_NAME, id)

    async def _query(
        self,
        filter: Filter | None = None,
        sort: list[Comparator] | list[dict[str, Any]] | None = None,
        limit: int | None = None,
        position: int | None = None,
        **extra: Any,
    ) -> QueryResponse:
        """Call ``Type/query``; results are identifiers in sort order."""
        arguments = self._args(
            filter=filter_to_wire(filter) if filter is not None else None,
            sort=sort_to_wire(sort) if sort is not None else None,
            limit=limit,
            position=position,
            **extra,
        )
        method = self._method("query")
        data = await self._call(method, arguments)
        if not isinstance(data.get("ids"), list):
            raise InvalidResponseError(f"Invalid {method} response: no ids")
        return self._parse(QueryResponse, method, data)

    async def _query_ids(self, *args: Any, **kwargs: Any) -> list[str]:
        response = await self._query(*args, **kwargs)
        return response.ids

    async def _query_changes(
        self,
        since_query_state: str,
        filter: Filter | None = None,
        sort: list[Comparator] | list[dict[str, Any]] | None = None,
        max_changes: int | None = None,
        **extra: Any,
    ) -> QueryChangesResponse:
        arguments = self._args(
            sinceQueryState=since_query_state,
            filter=filter_to_wire(filter) if filter is not None else None,
            sort=sort_to_wire(sort) if sort is not None else None,
            maxChanges=max_changes,
            **extra,
        )
        method = self._method("queryChanges")
        data = await self._call(method, arguments)
        return self._parse(QueryChangesResponse, method, data)

    async def _set(
        self,
        create: dict[str, Any] | None = None,
        update: dict[str, dict[str, Any]] | None = None,
        destroy: list[str] | None = None,
        **extra: Any,
    ) -> SetResponse[EntityT]:
        """Call ``Type/set``.

        Create payloads may be models or dictionaries. Per-item failures
        are returned in the ``not_*`` maps, never raised.
        """
        arguments = self._args(
            create={key: _payload(value) for key, value in create.items()} if create else None,
            update={key: _payload(value) for key, value in update.items()} if update else None,
            destroy=list(destroy) if destroy else None,
            **extra,
        )
        method = self._method("set")
        data = await self._call(method, arguments)
        return self._parse(SetResponse[self._MODEL], method, data)  # type: ignore[name-defined]

    async def _create_one(self, payload: Any, key: str = "new", **extra: Any) -> EntityT:
        """Create one record and return the server's view of it.

        Raises:
            SetItemError: If the server rejected the create.
            InvalidResponseError: If the record is in neither map.
        """
        response = await self._set(create={key: payload}, **extra)
        if key in response.not_created:
            raise SetItemError(self._method("set"), key, response.not_created[key])
        if key not in response.created:
            raise InvalidResponseError(f"No created {self._TYPE_NAME} in response")
        return response.created[key]

    async def _update_one(self, id: str, patch: dict[str, Any]) -> None:
        """Apply one patch; an empty patch performs no call.

        Raises:
            SetItemError: If the server rejected the update.
        """
        if not patch:
            return
        response = await self._set(update={id: patch})
        if id in response.not_updated:
            raise SetItemError(self._method("set"), id, response.not_updated[id])

    async def _destroy(self, ids: list[str]) -> SetResponse[EntityT] | None:
        """Destroy records; an empty list performs no call.

        Raises:
            SetItemError: For the first identifier the server refused.
        """
        if not ids:
            return None
        response = await self._set(destroy=ids)
        for id in ids:
            if id in response.not_destroyed:
                raise SetItemError(self._method("set"), id, response.not_destroyed[id])
        return response

    async def _changes(self, since_state: str, max_changes: int | None = None) -> ChangesResponse:
        """Call ``Type/changes``."""
        arguments = self._args(sinceState=since_state, maxChanges=max_changes)
        method = self._method("changes")
        data = await self._call(method, arguments)
        return self._parse(ChangesResponse, method, data)

    async def changes(self, since_state: str, max_changes: int | None = None) -> ChangesResponse:
        """Identifiers created, updated and destroyed since ``since_state``.

        Args:
            since_state: State token from a previous /get or /changes.
            max_changes: Upper bound on identifiers returned per page.

        Returns:
            One page of changes. Keep calling with ``new_state`` while
            ``has_more_changes`` is true.
        """
        return await self._changes(since_state, max_changes)

    async def iter_all_changes(
        self,
        since_state: str,
        max_changes: int | None = None,
    ) -> AsyncIterator[ChangesResponse]:
        """Yield pages of changes until the server reports none remain."""
        state = since_state
        while True:
            page = await self._changes(state, max_changes)
            yield page
            if not page.has_more_changes or page.new_state == state:
                break
            state = page.new_state


def _payload(value: Any) -> Any:
    if hasattr(value, "to_wire"):
        return value.to_wire()
    return value
