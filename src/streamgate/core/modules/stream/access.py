"""Access rules for stream sessions.

Rules run in a fixed order and stop at the first failure: existence, expiry,
referer origin, then the credential check. Nothing here touches storage or the
clock, so the same inputs always give the same answer.
"""

import secrets
from collections.abc import Collection
from datetime import datetime
from urllib.parse import urlsplit

from streamgate.core.modules.stream.models import LegacyWalletCredential, StreamSession, TokenCredential
from streamgate.errors import DenyReason
from streamgate.utils import normalize_address

DEFAULT_PORTS = {"http": 80, "https": 443}


def origin_host(value: str) -> str | None:
    """Extract ``host[:port]`` from a Referer or Origin header value.

    Returns None when the value is not an absolute http(s) URL. The scheme's
    default port is dropped, so ``https://host:443`` gives ``host``.
    """
    parts = urlsplit(value.strip())
    if parts.scheme not in DEFAULT_PORTS or not parts.hostname:
        return None
    try:
        port = parts.port
    except ValueError:
        return None
    if port is None or port == DEFAULT_PORTS[parts.scheme]:
        return parts.hostname
    return f"{parts.hostname}:{port}"


def is_allowed_origin(referer: str, allowed_origins: Collection[str]) -> bool:
    host = origin_host(referer)
    return host is not None and host in allowed_origins


def check_credential(stream: StreamSession, token: str | None, wallet: str | None) -> DenyReason | None:
    match stream.credential:
        case TokenCredential(access_token=access_token):
            if token is None or not secrets.compare_digest(token.encode(), access_token.encode()):
                return DenyReason.BAD_TOKEN
        case LegacyWalletCredential():
            # Old sessions without a recorded payer stay open to anyone holding the id
            if stream.payer_address is not None and normalize_address(wallet) != stream.payer_address.lower():
                return DenyReason.BAD_WALLET
    return None


def check_access(
    stream: StreamSession | None,
    token: str | None,
    wallet: str | None,
    referer: str | None,
    allowed_origins: Collection[str],
    at: datetime,
) -> DenyReason | None:
    """Return the first rule the request fails, or None when access is allowed."""
    if stream is None:
        return DenyReason.NOT_FOUND
    if stream.is_expired(at):
        return DenyReason.EXPIRED
    if referer and not is_allowed_origin(referer, allowed_origins):
        return DenyReason.BAD_ORIGIN
    return check_credential(stream, token, wallet)
