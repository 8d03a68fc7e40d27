"""
Guard Module - Authorization gate for HTTP handlers.

Extracts Basic credentials from an Authorization header value and turns a
keychain verification into an allow/deny decision. Sending the response is
left to the web framework in use.
"""

import base64
import binascii
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from access_keychain.keychain import Keychain


UNAUTHORIZED_STATUS = 401
UNAUTHORIZED_REASON = "Unauthorized"
DEFAULT_REALM = "access-keychain"


@dataclass
class GuardResult:
    """Outcome of a guarded request."""

    allowed: bool
    status: int = 200
    reason: str = "OK"
    headers: dict[str, str] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.allowed


def parse_basic_auth(authorization: Optional[str]) -> Optional[tuple[str, str]]:
    """
    Parse an HTTP Basic Authorization header value.

    Args:
        authorization: Header value, e.g. "Basic QUJDOnNlY3JldA=="

    Returns:
        (id, secret) tuple, or None if the header is missing or malformed
    """
    if not authorization:
        return None

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "basic" or not token:
        return None

    try:
        decoded = base64.b64decode(token.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    key_id, sep, secret = decoded.partition(":")
    if not sep:
        return None
    return key_id, secret


def guard(
    keychain: "Keychain",
    authorization: Optional[str],
    realm: str = DEFAULT_REALM
) -> GuardResult:
    """
    Decide whether a request may proceed.

    A denied request gets the same 401 whether the id was unknown or the
    secret was wrong; the caller must stop handling it.
    """
    if keychain.allow(authorization):
        return GuardResult(allowed=True)
    return GuardResult(
        allowed=False,
        status=UNAUTHORIZED_STATUS,
        reason=UNAUTHORIZED_REASON,
        headers={"WWW-Authenticate": f'Basic realm="{realm}"'},
    )


def basic_auth_header(key_id: str, secret: str) -> str:
    """Build the Authorization header value for an id/secret pair."""
    token = base64.b64encode(f"{key_id}:{secret}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"
