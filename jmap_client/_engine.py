"""Invocation engine for the JMAP client.

This module builds request envelopes, posts them through the transport and
correlates the response with the request that produced it. Arguments and
results are plain JSON dictionaries here; typed bindings are layered on top
by the sub-clients, so supporting a new data type never requires a change
to this module.

Every call sends exactly one invocation with the fixed tag ``"0"``.

This is an internal module and should not be imported directly by users.
"""

import json
import logging
from typing import Any

from jmap_client._http import Transport
from jmap_client.exceptions import (
    EmptyResponseError,
    EnvelopeError,
    MethodError,
    UnexpectedMethodError,
)
from jmap_client.models import Invocation, Request, Response

logger = logging.getLogger(__name__)

DEFAULT_TAG = "0"
ERROR_METHOD = "error"


def build_request(
    using: list[str],
    method: str,
    arguments: dict[str, Any],
    tag: str = DEFAULT_TAG,
) -> Request:
    """Build a single-invocation request envelope.

    Args:
        using: Capability URIs the call depends on.
        method: Method name, e.g. ``"Email/query"``.
        arguments: Method arguments.
        tag: Correlation tag.

    Returns:
        The request envelope.
    """
    return Request(
        using=list(using),
        method_calls=[Invocation(name=method, arguments=arguments, tag=tag)],
    )


def parse_response(body: bytes, accept_bare_array: bool = False) -> Response:
    """Parse a response body into an ordered list of invocations.

    The canonical shape is an object with a ``methodResponses`` array. Some
    server versions have been seen to return the array of triples on its
    own; that shape is only accepted when ``accept_bare_array`` is set.

    Args:
        body: Raw response bytes.
        accept_bare_array: Accept a top-level array of triples.

    Returns:
        The parsed response envelope.

    Raises:
        EnvelopeError: If the body is not JSON or does not have one of the
            accepted shapes, or any entry is not a well-formed triple.
    """
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise EnvelopeError(f"Invalid JMAP response: not JSON ({e})") from e

    if isinstance(data, dict):
        raw_responses = data.get("methodResponses")
        if not isinstance(raw_responses, list):
            raise EnvelopeError("Invalid JMAP response: missing methodResponses", body=data)
        session_state = data.get("sessionState")
        created_ids = data.get("createdIds")
    elif isinstance(data, list) and accept_bare_array:
        logger.warning("Server returned a bare methodResponses array; accepting it")
        raw_responses = data
        session_state = None
        created_ids = None
    else:
        raise EnvelopeError("Invalid JMAP response: not an object", body=data)

    return Response(
        method_responses=[Invocation.from_wire(item) for item in raw_responses],
        session_state=session_state if isinstance(session_state, str) else None,
        created_ids=created_ids if isinstance(created_ids, dict) else None,
    )


class InvocationEngine:
    """Issues method calls against the session's API URL.

    Holds no state besides the transport and the URL; concurrent calls are
    independent round trips.

    Attributes:
        api_url: The URL method calls are POSTed to.
        accept_bare_array: Whether to accept the bare-array response shape.
    """

    def __init__(
        self,
        transport: Transport,
        api_url: str,
        accept_bare_array: bool = False,
    ) -> None:
        """Initialize the engine.

        Args:
            transport: The transport used for every call.
            api_url: The session's API URL.
            accept_bare_array: Accept responses that are a bare array of
                triples instead of an object.
        """
        self.transport = transport
        self.api_url = api_url
        self.accept_bare_array = accept_bare_array

    async def send(self, request: Request) -> Response:
        """POST a request envelope and parse the response envelope.

        Raises:
            TransportError: If the round trip fails.
            EnvelopeError: If the response envelope is malformed.
        """
        body = await self.transport.post_json(self.api_url, request.to_bytes())
        return parse_response(body, accept_bare_array=self.accept_bare_array)

    async def call_method(
        self,
        using: list[str],
        method: str,
        arguments: dict[str, Any],
    ) -> dict[str, Any]:
        """Call one method and return its result arguments.

        Args:
            using: Capability URIs the call depends on.
            method: Method name, e.g. ``"Mailbox/get"``.
            arguments: Method arguments.

        Returns:
            The argument object of the matching response, unchanged.

        Raises:
            TransportError: If the round trip fails.
            EnvelopeError: If the envelope is malformed or the response tag
                does not match the request tag.
            EmptyResponseError: If ``methodResponses`` is empty.
            MethodError: If the server answered with an ``"error"`` response.
            UnexpectedMethodError: If the response name is neither the
                requested method nor ``"error"``.
        """
        request = build_request(using, method, arguments)
        logger.debug("Calling %s using %s", method, request.using)

        response = await self.send(request)
        if not response.method_responses:
            raise EmptyResponseError(method)

        first = response.method_responses[0]
        if first.tag != DEFAULT_TAG:
            raise EnvelopeError(
                f"Invalid JMAP response: tag {first.tag!r} does not match request tag "
                f"{DEFAULT_TAG!r}",
                body=first.to_wire(),
            )

        if first.name == ERROR_METHOD:
            error = MethodError(method, first.arguments)
            logger.warning("%s returned error %s", method, error.error_type)
            raise error

        if first.name != method:
            raise UnexpectedMethodError(expected=method, actual=first.name)

        return first.arguments
