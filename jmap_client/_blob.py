"""Blob sub-client for the JMAP client (RFC 9404).

This module provides the DataSource types used to describe outbound blob
content, the Blob/* result models, and AsyncBlobClient, which covers both
the protocol-native methods (Blob/upload, Blob/get, Blob/lookup, Blob/copy)
and the out-of-band upload and download URLs carried in the Session.

This is an internal module. Import from `jmap_client` instead.
"""

import base64
import binascii
import json
import logging
from typing import Any, ClassVar, Union
from urllib.parse import quote

from pydantic import ConfigDict, Field, ValidationError as PydanticValidationError, field_validator
from pydantic.alias_generators import to_camel

from jmap_client import capabilities
from jmap_client._base import AsyncBaseClient
from jmap_client.exceptions import (
    BlobDecodeError,
    BlobEncodingError,
    BlobError,
    BlobTooLargeError,
    BlobUploadError,
    InvalidResponseError,
    MalformedSessionError,
    NotFoundError,
)
from jmap_client.models import JMAPModel, SetError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

TEXT_KEY = "data:asText"
BASE64_KEY = "data:asBase64"
BLOB_ID_KEY = "blobId"


def encode_base64(data: bytes) -> str:
    """Encode bytes with the standard base64 alphabet."""
    return base64.b64encode(data).decode("ascii")


def decode_base64(value: str) -> bytes:
    """Decode standard base64.

    Raises:
        BlobDecodeError: If the value is not valid base64.
    """
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise BlobDecodeError(f"Invalid base64 data: {e}") from e


# DataSource variants


class TextSource(JMAPModel):
    """Inline text content."""

    text: str

    def to_wire(self) -> dict[str, Any]:
        return {TEXT_KEY: self.text}


class Base64Source(JMAPModel):
    """Inline binary content, base64 encoded."""

    data: str

    def to_wire(self) -> dict[str, Any]:
        return {BASE64_KEY: self.data}

    def decode(self) -> bytes:
        return decode_base64(self.data)


class BlobRefSource(JMAPModel):
    """A range of an existing blob.

    Attributes:
        blob_id: The referenced blob.
        offset: Start of the range in bytes, from the beginning if unset.
        length: Length of the range in bytes, to the end if unset.
    """

    blob_id: str
    offset: int | None = None
    length: int | None = None

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {BLOB_ID_KEY: self.blob_id}
        if self.offset is not None:
            wire["offset"] = self.offset
        if self.length is not None:
            wire["length"] = self.length
        return wire


DataSource = Union[TextSource, Base64Source, BlobRefSource]


def data_source_from_wire(value: Any) -> DataSource:
    """Parse a DataSource by which of its three keys is present.

    Raises:
        BlobError: If the value is not an object, or has zero or more than
            one of ``data:asText``, ``data:asBase64`` and ``blobId``, or if
            the value under that key is ill-typed.
    """
    if not isinstance(value, dict):
        raise BlobError("DataSource must be an object")

    present = [key for key in (TEXT_KEY, BASE64_KEY, BLOB_ID_KEY) if key in value]
    if len(present) != 1:
        raise BlobError(
            f"DataSource must have exactly one of {TEXT_KEY}, {BASE64_KEY}, {BLOB_ID_KEY}; "
            f"got {present or 'none'}"
        )

    key = present[0]
    try:
        if key == TEXT_KEY:
            return TextSource(text=value[TEXT_KEY])
        if key == BASE64_KEY:
            return Base64Source(data=value[BASE64_KEY])
        return BlobRefSource(
            blob_id=value[BLOB_ID_KEY],
            offset=value.get("offset"),
            length=value.get("length"),
        )
    except PydanticValidationError as e:
        raise BlobError(f"Invalid {key} DataSource: {e}") from e


def data_source_from_bytes(data: bytes) -> Base64Source:
    return Base64Source(data=encode_base64(data))


def data_source_from_text(text: str) -> TextSource:
    return TextSource(text=text)


# Request and response models


class BlobUploadObject(JMAPModel):
    """One blob to create with Blob/upload.

    The blob is the concatenation of ``data`` in order.

    Attributes:
        data: The content sources.
        type: Media type hint stored with the blob.
    """

    data: list[DataSource]
    type: str | None = None

    @field_validator("data", mode="before")
    @classmethod
    def _parse_sources(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [data_source_from_wire(v) if isinstance(v, dict) else v for v in value]
        return value

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"data": [source.to_wire() for source in self.data]}
        if self.type is not None:
            wire["type"] = self.type
        return wire


class BlobCreatedInfo(JMAPModel):
    """A blob created by Blob/upload."""

    id: str
    type: str | None = None
    size: int | None = None


class BlobUploadResponse(JMAPModel):
    """Result of Blob/upload, keyed by the caller's creation labels."""

    account_id: str | None = None
    created: dict[str, BlobCreatedInfo] = Field(default_factory=dict)
    not_created: dict[str, SetError] = Field(default_factory=dict)

    @field_validator("created", "not_created", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class BlobData(JMAPModel):
    """One result of Blob/get.

    Digest properties such as ``digest:sha`` are kept as extra attributes
    and exposed through ``digests``.

    Attributes:
        id: The blob identifier.
        data_as_text: Content as text, only trustworthy when
            ``is_encoding_problem`` is false.
        data_as_base64: Content as base64.
        size: Full blob size in bytes.
        is_encoding_problem: The content is not valid UTF-8.
        is_truncated: The requested range extended past the blob's end.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str
    data_as_text: str | None = Field(default=None, alias=TEXT_KEY)
    data_as_base64: str | None = Field(default=None, alias=BASE64_KEY)
    size: int | None = None
    is_encoding_problem: bool = False
    is_truncated: bool = False

    @property
    def digests(self) -> dict[str, str]:
        """Digest algorithm name to base64 digest."""
        extra = self.model_extra or {}
        return {key[len("digest:"):]: value for key, value in extra.items() if key.startswith("digest:")}

    def as_text(self) -> str:
        """The content as text.

        Raises:
            BlobEncodingError: If the server flagged an encoding problem or
                the base64 content is not UTF-8.
            BlobError: If the result carries no content.
        """
        if self.is_encoding_problem:
            raise BlobEncodingError(f"Blob {self.id} is not valid UTF-8")
        if self.data_as_text is not None:
            return self.data_as_text
        if self.data_as_base64 is not None:
            try:
                return decode_base64(self.data_as_base64).decode("utf-8")
            except UnicodeDecodeError as e:
                raise BlobEncodingError(f"Blob {self.id} is not valid UTF-8") from e
        raise BlobError(f"No data in Blob/get response for {self.id}")

    def as_bytes(self) -> bytes:
        """The content as bytes, preferring the base64 form.

        Raises:
            BlobDecodeError: If the base64 content is invalid.
            BlobError: If the result carries no content.
        """
        if self.data_as_base64 is not None:
            return decode_base64(self.data_as_base64)
        if self.data_as_text is not None and not self.is_encoding_problem:
            return self.data_as_text.encode("utf-8")
        raise BlobError(f"No data in Blob/get response for {self.id}")


class BlobLookupInfo(JMAPModel):
    """Entities referencing a blob, keyed by type name."""

    id: str
    matched_ids: dict[str, list[str]] = Field(default_factory=dict)


class BlobCopyResponse(JMAPModel):
    """Result of Blob/copy.

    Attributes:
        from_account_id: The source account.
        account_id: The destination account.
        copied: Source blob identifier to new blob identifier.
        not_copied: Source blob identifier to failure.
    """

    from_account_id: str | None = None
    account_id: str | None = None
    copied: dict[str, str] = Field(default_factory=dict)
    not_copied: dict[str, SetError] = Field(default_factory=dict)

    @field_validator("copied", "not_copied", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class BlobUploadInfo(JMAPModel):
    """Response body of an upload to the Session's upload URL."""

    account_id: str | None = None
    blob_id: str
    type: str | None = None
    size: int


def expand_template(template: str, values: dict[str, str]) -> str:
    """Substitute ``{name}`` placeholders with URL-escaped values."""
    url = template
    for key, value in values.items():
        url = url.replace("{" + key + "}", quote(value, safe=""))
    return url


class AsyncBlobClient(AsyncBaseClient):
    """Asynchronous client for blob operations.

    Example:
        async with await AsyncJMAPClient.connect(token) as client:
            blob_id = await client.blob.upload_text("hello")
            text = await client.blob.get_as_text(blob_id)

            # Which emails still reference this blob?
            refs = await client.blob.lookup([blob_id], ["Email"])
    """

    _CAPABILITIES: ClassVar[tuple[str, ...]] = (capabilities.BLOB,)

    def _check_size(self, size: int, limit: int | None) -> None:
        if limit is not None and limit > 0 and size > limit:
            raise BlobTooLargeError(size, limit)

    def _blob_limit(self) -> int | None:
        capability = self._context.blob_capability()
        return capability.max_size_blob_set if capability is not None else None

    async def upload(self, create: dict[str, BlobUploadObject]) -> BlobUploadResponse:
        """Create blobs from inline data and existing blob ranges.

        Args:
            create: Creation label to the blob to create.

        Returns:
            Created blobs and per-label failures. A label missing from
            ``created`` failed even though the call succeeded.

        Raises:
            CapabilityError: If the account lacks the blob capability.
            MethodError: If the server rejected the call.
        """
        arguments = self._args(create={key: obj.to_wire() for key, obj in create.items()})
        data = await self._call("Blob/upload", arguments)
        return self._parse(BlobUploadResponse, "Blob/upload", data)

    async def _upload_single(self, source: DataSource, size: int, type: str | None) -> str:
        self._context.require(*self._CAPABILITIES)
        self._check_size(size, self._blob_limit())

        label = "single"
        response = await self.upload({label: BlobUploadObject(data=[source], type=type)})
        if label in response.created:
            return response.created[label].id

        set_error = response.not_created.get(label)
        message = "Blob upload failed"
        if set_error is not None:
            message = f"{message}: {set_error.type}"
            if set_error.description:
                message = f"{message} ({set_error.description})"
        raise BlobUploadError(message, set_error=set_error)

    async def upload_bytes(self, data: bytes, type: str | None = None) -> str:
        """Upload bytes as a new blob.

        Args:
            data: The content.
            type: Optional media type hint.

        Returns:
            The new blob identifier.

        Raises:
            BlobTooLargeError: Before any I/O, if the content exceeds the
                advertised ``maxSizeBlobSet``.
            BlobUploadError: If the server did not create the blob.
        """
        return await self._upload_single(data_source_from_bytes(data), len(data), type)

    async def upload_text(self, text: str, type: str | None = None) -> str:
        """Upload text as a new blob. See ``upload_bytes``."""
        return await self._upload_single(
            data_source_from_text(text), len(text.encode("utf-8")), type
        )

    async def get(
        self,
        ids: list[str],
        properties: list[str] | None = None,
        offset: int | None = None,
        length: int | None = None,
    ) -> list[BlobData]:
        """Fetch blob content and metadata.

        Args:
            ids: Blob identifiers; an empty list performs no call.
            properties: E.g. ``["data:asText", "digest:sha", "size"]``.
            offset: Start of the range to return.
            length: Length of the range to return.

        Returns:
            One entry per blob found, in server order.
        """
        if not ids:
            return []

        arguments = self._args(ids=list(ids), properties=properties, offset=offset, length=length)
        data = await self._call("Blob/get", arguments)
        items = data.get("list")
        if not isinstance(items, list):
            raise InvalidResponseError("Invalid Blob/get response: no list")
        return [self._parse(BlobData, "Blob/get", item) for item in items]

    async def _get_one(self, id: str, properties: list[str] | None = None) -> BlobData:
        for item in await self.get([id], properties=properties):
            if item.id == id:
                return item
        raise NotFoundError("Blob", id)

    async def get_as_text(self, id: str) -> str:
        """Fetch a blob's content as text.

        Raises:
            NotFoundError: If the blob does not exist.
            BlobEncodingError: If the content is not valid UTF-8.
        """
        return (await self._get_one(id)).as_text()

    async def get_as_base64(self, id: str) -> str:
        """Fetch a blob's content as base64, whatever its encoding.

        Raises:
            NotFoundError: If the blob does not exist.
            BlobError: If the response has no base64 data.
        """
        result = await self._get_one(id, properties=[BASE64_KEY, "size"])
        if result.data_as_base64 is None:
            raise BlobError(f"No base64 data in Blob/get response for {id}")
        return result.data_as_base64

    async def get_bytes(self, id: str) -> bytes:
        """Fetch a blob's content as bytes."""
        return (await self._get_one(id)).as_bytes()

    async def info(self, id: str) -> BlobData:
        """Fetch a blob's size and every digest the server supports."""
        capability = self._context.blob_capability()
        digests = capability.supported_digest_algorithms if capability is not None else []
        return await self._get_one(id, properties=["size", *(f"digest:{d}" for d in digests)])

    async def lookup(self, ids: list[str], type_names: list[str]) -> list[BlobLookupInfo]:
        """Find the entities that reference each blob.

        Args:
            ids: Blob identifiers; an empty list performs no call.
            type_names: Data types to search, e.g. ``["Email", "Mailbox"]``.

        Returns:
            Per blob, matching entity identifiers keyed by type name.
        """
        if not ids:
            return []

        arguments = self._args(ids=list(ids), typeNames=list(type_names))
        data = await self._call("Blob/lookup", arguments)
        items = data.get("list")
        if not isinstance(items, list):
            raise InvalidResponseError("Invalid Blob/lookup response: no list")
        return [self._parse(BlobLookupInfo, "Blob/lookup", item) for item in items]

    async def copy(self, from_account_id: str, blob_ids: list[str]) -> BlobCopyResponse:
        """Copy blobs from another account into the working account.

        Blob/copy belongs to the core capability.
        """
        arguments = self._args(fromAccountId=from_account_id, blobIds=list(blob_ids))
        data = await self._engine.call_method(capabilities.using_for(), "Blob/copy", arguments)
        return self._parse(BlobCopyResponse, "Blob/copy", data)

    # Out-of-band transfer

    def download_url(self, blob_id: str, type: str = DEFAULT_CONTENT_TYPE, name: str = "blob") -> str:
        """Resolve the Session's download URL template for a blob.

        Raises:
            MalformedSessionError: If the Session has no download URL.
        """
        template = self._context.session.download_url
        if not template:
            raise MalformedSessionError("Session has no downloadUrl")
        return expand_template(
            template,
            {"accountId": self.account_id, "blobId": blob_id, "type": type, "name": name},
        )

    async def download(
        self,
        blob_id: str,
        type: str = DEFAULT_CONTENT_TYPE,
        name: str = "blob",
    ) -> bytes:
        """Download a blob's bytes through the Session's download URL.

        Args:
            blob_id: The blob to fetch.
            type: Content type the server should respond with.
            name: File name hint.

        Raises:
            TransportError: If the download fails.
        """
        url = self.download_url(blob_id, type, name)
        logger.debug("Downloading blob %s", blob_id)
        return await self._engine.transport.get(url, b"")

    async def download_text(
        self,
        blob_id: str,
        type: str = "text/plain",
        name: str = "blob",
    ) -> str:
        """Download a blob and decode it as UTF-8.

        Raises:
            BlobEncodingError: If the bytes are not valid UTF-8.
        """
        data = await self.download(blob_id, type, name)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise BlobEncodingError(f"Blob {blob_id} is not valid UTF-8") from e

    async def upload_raw(self, data: bytes, content_type: str = DEFAULT_CONTENT_TYPE) -> BlobUploadInfo:
        """Upload bytes through the Session's upload URL.

        Raises:
            BlobTooLargeError: Before any I/O, if the content exceeds the
                core ``maxSizeUpload``.
            MalformedSessionError: If the Session has no upload URL.
            TransportError: If the upload fails.
            InvalidResponseError: If the response is not an upload result.
        """
        template = self._context.session.upload_url
        if not template:
            raise MalformedSessionError("Session has no uploadUrl")
        self._check_size(len(data), self._context.core.max_size_upload)

        url = expand_template(template, {"accountId": self.account_id})
        logger.debug("Uploading %d bytes of %s", len(data), content_type)
        body = await self._engine.transport.post_binary(url, data, content_type)

        try:
            return BlobUploadInfo.model_validate(json.loads(body))
        except (ValueError, PydanticValidationError) as e:
            raise InvalidResponseError(f"Invalid upload response: {e}") from e
