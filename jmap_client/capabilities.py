"""Capability URIs understood by the JMAP client.

A capability URI must appear in a request's ``using`` list before the
server will accept any method belonging to it, and it must appear in the
active account's ``accountCapabilities`` before this client will issue
such a method at all.

The table below never changes at runtime; both the session bootstrap and
the capability gate on every typed operation read from it.
"""

CORE = "urn:ietf:params:jmap:core"
MAIL = "urn:ietf:params:jmap:mail"
SUBMISSION = "urn:ietf:params:jmap:submission"
VACATION_RESPONSE = "urn:ietf:params:jmap:vacationresponse"
BLOB = "urn:ietf:params:jmap:blob"
PRINCIPALS = "urn:ietf:params:jmap:principals"
PRINCIPALS_OWNER = "urn:ietf:params:jmap:principals:owner"
MASKED_EMAIL = "https://www.fastmail.com/dev/maskedemail"

CAPABILITIES: dict[str, str] = {
    "core": CORE,
    "mail": MAIL,
    "submission": SUBMISSION,
    "vacationresponse": VACATION_RESPONSE,
    "blob": BLOB,
    "principals": PRINCIPALS,
    "principals:owner": PRINCIPALS_OWNER,
    "maskedemail": MASKED_EMAIL,
}


def capability_uri(name: str) -> str:
    """Look up a capability URI by its short name.

    Args:
        name: Short name such as ``"blob"`` or ``"maskedemail"``.

    Returns:
        The full capability URI.

    Raises:
        KeyError: If the name is not in the table.
    """
    return CAPABILITIES[name]


def using_for(*uris: str) -> list[str]:
    """Build a ``using`` list that always starts with the core capability.

    Duplicates are dropped while preserving order.
    """
    using = [CORE]
    for uri in uris:
        if uri not in using:
            using.append(uri)
    return using
