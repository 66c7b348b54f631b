"""Shared wire models for the JMAP client.

This module defines the protocol objects that are not specific to one data
type: the Session document, request and response envelopes, filters and
comparators, and the generic result shapes of the standard /get, /query,
/set and /changes methods.

Wire names are camelCase; Python attributes are snake_case. Every model
accepts either form on input and ``to_wire()`` emits the wire form with
unset optional fields omitted.
"""

import json
from typing import Any, Generic, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from jmap_client.capabilities import CORE
from jmap_client.exceptions import EnvelopeError

EntityT = TypeVar("EntityT")


class JMAPModel(BaseModel):
    """Base class for all wire models."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON shape the server expects."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Entity(JMAPModel):
    """Base class for server-side records.

    Every record has a server-assigned ``id`` unique within its account and
    type. All other properties are optional because the caller may request
    only a subset of them; properties this client does not model are kept
    as extra attributes.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str


# Session


class CoreCapability(JMAPModel):
    """Server limits advertised under ``urn:ietf:params:jmap:core``."""

    max_size_upload: int | None = None
    max_concurrent_upload: int | None = None
    max_size_request: int | None = None
    max_concurrent_requests: int | None = None
    max_calls_in_request: int | None = None
    max_objects_in_get: int | None = None
    max_objects_in_set: int | None = None
    collation_algorithms: list[str] = Field(default_factory=list)


class BlobCapability(JMAPModel):
    """Account capability for ``urn:ietf:params:jmap:blob`` (RFC 9404).

    Attributes:
        max_size_blob_set: Largest blob, in bytes, Blob/upload will create.
        max_data_sources: Most DataSource objects allowed per blob.
        supported_type_names: Data types Blob/lookup can search.
        supported_digest_algorithms: Digest names usable in Blob/get.
    """

    max_size_blob_set: int | None = None
    max_data_sources: int | None = None
    supported_type_names: list[str] = Field(default_factory=list)
    supported_digest_algorithms: list[str] = Field(default_factory=list)


class PrincipalsCapability(JMAPModel):
    """Account capability for ``urn:ietf:params:jmap:principals``."""

    current_user_principal_id: str | None = None


class PrincipalsOwnerCapability(JMAPModel):
    """Account capability for ``urn:ietf:params:jmap:principals:owner``."""

    account_id_for_principal: str | None = None
    principal_id: str | None = None


class AccountData(JMAPModel):
    """Per-account metadata from the Session.

    Attributes:
        name: Display name of the account.
        is_personal: Whether the account belongs to the authenticated user.
        is_read_only: Whether the account rejects all mutations.
        account_capabilities: Capability URI to capability-specific value.
    """

    name: str | None = None
    is_personal: bool | None = None
    is_read_only: bool | None = None
    account_capabilities: dict[str, Any] = Field(default_factory=dict)

    @field_validator("account_capabilities", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class Session(JMAPModel):
    """The bootstrap document returned by the session endpoint.

    Fetched once per client. Never mutated; if the server's session state
    changes a new Session has to be fetched.

    Attributes:
        api_url: URL that method calls are POSTed to.
        accounts: Account identifier to AccountData.
        primary_accounts: Capability URI to the account primary for it.
        capabilities: Server-wide capability URI to capability value.
        download_url: Template with ``{accountId}``, ``{blobId}``, ``{type}``
            and ``{name}`` placeholders.
        upload_url: Template with an ``{accountId}`` placeholder.
        state: Opaque session state token.
    """

    api_url: str
    accounts: dict[str, AccountData]
    primary_accounts: dict[str, str] = Field(default_factory=dict)
    capabilities: dict[str, Any] = Field(default_factory=dict)
    username: str | None = None
    download_url: str | None = None
    upload_url: str | None = None
    event_source_url: str | None = None
    state: str | None = None

    @property
    def core_capability(self) -> CoreCapability:
        """Server limits from the core capability (empty if absent)."""
        return CoreCapability.model_validate(self.capabilities.get(CORE) or {})


# Envelopes


class Invocation(JMAPModel):
    """One ``[name, arguments, tag]`` unit of a request or response."""

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    tag: str

    def to_wire(self) -> list[Any]:  # type: ignore[override]
        return [self.name, self.arguments, self.tag]

    @classmethod
    def from_wire(cls, value: Any) -> "Invocation":
        """Parse a response triple.

        Raises:
            EnvelopeError: If the value is not a 3-element array of
                (string, object, string).
        """
        if not isinstance(value, list):
            raise EnvelopeError("Invalid JMAP response: invocation is not an array", body=value)
        if len(value) != 3:
            raise EnvelopeError(
                "Invalid JMAP response: invocation must have 3 elements", body=value
            )
        name, arguments, tag = value
        if not isinstance(name, str):
            raise EnvelopeError("Invalid JMAP response: method name not string", body=value)
        if not isinstance(arguments, dict):
            raise EnvelopeError("Invalid JMAP response: arguments not an object", body=value)
        if not isinstance(tag, str):
            raise EnvelopeError("Invalid JMAP response: tag not string", body=value)
        return cls(name=name, arguments=arguments, tag=tag)


class Request(JMAPModel):
    """A request envelope: capabilities in use plus method calls."""

    using: list[str]
    method_calls: list[Invocation]

    def to_wire(self) -> dict[str, Any]:
        return {
            "using": list(self.using),
            "methodCalls": [call.to_wire() for call in self.method_calls],
        }

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_wire()).encode("utf-8")


class Response(JMAPModel):
    """A parsed response envelope."""

    method_responses: list[Invocation]
    session_state: str | None = None
    created_ids: dict[str, str] | None = None


# Filters and sorting


class Comparator(JMAPModel):
    """One sort criterion: a property and a direction (ascending by default)."""

    property: str
    is_ascending: bool = True
    collation: str | None = None


class FilterOperator(JMAPModel):
    """An AND/OR/NOT node over nested filters."""

    operator: Literal["AND", "OR", "NOT"]
    # Nodes and leaves are stored as passed in; see filter_to_wire.
    conditions: list[Any]

    def to_wire(self) -> dict[str, Any]:
        return {
            "operator": self.operator,
            "conditions": [filter_to_wire(c) for c in self.conditions],
        }


class FilterCondition(JMAPModel):
    """Base class for type-specific leaf conditions."""


Filter = Union[FilterOperator, FilterCondition, dict[str, Any]]

FilterOperator.model_rebuild()


def filter_to_wire(value: Filter) -> dict[str, Any]:
    """Serialize a filter tree to its wire form.

    Leaves may be condition models or plain dictionaries; operator nodes
    are serialized recursively.
    """
    if isinstance(value, FilterOperator):
        return value.to_wire()
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True, mode="json")
    return dict(value)


def sort_to_wire(sort: list[Comparator] | list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Serialize a sort list, accepting comparators or plain dictionaries."""
    return [c.to_wire() if isinstance(c, Comparator) else dict(c) for c in sort]


def and_(*conditions: Filter) -> FilterOperator:
    return FilterOperator(operator="AND", conditions=list(conditions))


def or_(*conditions: Filter) -> FilterOperator:
    return FilterOperator(operator="OR", conditions=list(conditions))


def not_(*conditions: Filter) -> FilterOperator:
    return FilterOperator(operator="NOT", conditions=list(conditions))


# Standard method results


class SetError(JMAPModel):
    """Why one item of a /set (or /copy, /import, /upload) call failed.

    Attributes:
        type: Error kind, e.g. ``"notFound"`` or ``"invalidProperties"``.
        description: Optional human-readable text.
        properties: For ``invalidProperties``, the offending property names.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    type: str
    description: str | None = None
    properties: list[str] | None = None


class GetResponse(JMAPModel, Generic[EntityT]):
    """Result of a /get call. ``list`` is in server order."""

    account_id: str | None = None
    state: str | None = None
    items: list[EntityT] = Field(default_factory=list, alias="list")
    not_found: list[str] = Field(default_factory=list)

    @field_validator("items", "not_found", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class QueryResponse(JMAPModel):
    """Result of a /query call."""

    account_id: str | None = None
    query_state: str | None = None
    can_calculate_changes: bool = False
    position: int = 0
    ids: list[str]
    total: int | None = None
    limit: int | None = None


class AddedItem(JMAPModel):
    """An identifier added to a query result at ``index``."""

    id: str
    index: int


class QueryChangesResponse(JMAPModel):
    """Result of a /queryChanges call."""

    account_id: str | None = None
    old_query_state: str
    new_query_state: str
    total: int | None = None
    removed: list[str] = Field(default_factory=list)
    added: list[AddedItem] = Field(default_factory=list)


class ChangesResponse(JMAPModel):
    """Result of a /changes call.

    Callers must keep calling with ``new_state`` until ``has_more_changes``
    is false to reach a consistent snapshot.
    """

    account_id: str | None = None
    old_state: str
    new_state: str
    has_more_changes: bool = False
    created: list[str] = Field(default_factory=list)
    updated: list[str] = Field(default_factory=list)
    destroyed: list[str] = Field(default_factory=list)
    updated_properties: list[str] | None = None


class SetResponse(JMAPModel, Generic[EntityT]):
    """Result of a /set call, modelling partial success per item.

    ``created`` and ``not_created`` are keyed by the caller's creation key;
    ``updated``/``not_updated`` and ``not_destroyed`` by record identifier.
    An ``updated`` value is ``None`` when the server changed no properties
    the client did not set itself, otherwise a map of just the properties
    the server changed (it never repeats ``id``).
    """

    account_id: str | None = None
    old_state: str | None = None
    new_state: str | None = None
    created: dict[str, EntityT] = Field(default_factory=dict)
    updated: dict[str, Optional[dict[str, Any]]] = Field(default_factory=dict)
    destroyed: list[str] = Field(default_factory=list)
    not_created: dict[str, SetError] = Field(default_factory=dict)
    not_updated: dict[str, SetError] = Field(default_factory=dict)
    not_destroyed: dict[str, SetError] = Field(default_factory=dict)

    @field_validator(
        "created", "updated", "not_created", "not_updated", "not_destroyed", mode="before"
    )
    @classmethod
    def _none_to_empty_map(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("destroyed", mode="before")
    @classmethod
    def _none_to_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def has_errors(self) -> bool:
        """Whether any item failed."""
        return bool(self.not_created or self.not_updated or self.not_destroyed)
