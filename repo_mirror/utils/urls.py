"""
Helpers for embedding and hiding credentials in clone URLs.
"""

import re
from typing import Optional
from urllib.parse import quote, urlsplit, urlunsplit

from repo_mirror.core.exceptions import InvalidUrlError
from repo_mirror.core.models import Credentials

NETWORK_SCHEMES = ("http", "https", "ssh", "git")
ALLOWED_SCHEMES = NETWORK_SCHEMES + ("file",)

_USERINFO_RE = re.compile(r"(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)[^/@\s]+@")


def add_auth_to_url(url: str, credentials: Optional[Credentials]) -> str:
    """
    Embed URL-encoded credentials into a clone URL.

    Args:
        url: Clone URL as returned by the hosting service
        credentials: Username and password or token, ``None`` leaves the URL untouched

    Returns:
        The URL with ``user:password@`` userinfo

    Raises:
        InvalidUrlError: If the URL is not well formed
    """
    try:
        parts = urlsplit(url)
        # Accessing port validates it
        port = parts.port
    except ValueError as e:
        raise InvalidUrlError(f"Invalid URL format: {mask_credentials(url)}") from e

    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise InvalidUrlError(f"Invalid URL format: {mask_credentials(url)}")
    if scheme in NETWORK_SCHEMES and not parts.hostname:
        raise InvalidUrlError(f"Invalid URL format: {mask_credentials(url)}")

    if credentials is None or scheme == "file":
        return url

    userinfo = "%s:%s" % (quote(credentials.username, safe=""), quote(credentials.password, safe=""))
    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"
    netloc = f"{userinfo}@{host}"
    if port is not None:
        netloc = f"{netloc}:{port}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def mask_credentials(text: str) -> str:
    """Replace any ``scheme://userinfo@`` with ``scheme://***@`` in free text."""
    return _USERINFO_RE.sub(r"\g<scheme>***@", text)

