# -*- coding: utf-8 -*-
"""
CMS base URL normalization.

The CMS is usually configured with an address that only resolves inside the
deployment (``http://127.0.0.1:8001``, ``http://cms:8001``). URLs handed to a
visitor's browser must point at a host the browser can reach, so loopback and
container-internal hosts are swapped for the site's public hostname.
"""
from typing import Iterable
from urllib.parse import urlsplit, urlunsplit

LOOPBACK_HOSTS = frozenset({"0.0.0.0", "127.0.0.1", "localhost", "::1"})


def ensure_scheme(base_url: str) -> str:
    """Add ``http://`` to a scheme-less base and drop trailing slashes."""
    url = (base_url or "").strip().rstrip("/")
    if not url:
        return ""
    if not url.startswith(("http://", "https://")):
        url = f"http://{url}"
    return url


def is_internal_host(hostname: str | None, internal_hosts: Iterable[str] = ()) -> bool:
    """True for loopback, wildcard and container-internal hostnames."""
    if not hostname:
        return False
    hostname = hostname.lower()
    return hostname in LOOPBACK_HOSTS or hostname in {h.lower() for h in internal_hosts}


def normalize_cms_base(
        base_url: str,
        public_hostname: str | None = None,
        internal_hosts: Iterable[str] = (),
) -> str:
    """
    Substitute the public hostname into an internal CMS base URL.

    Scheme and port are preserved. When the base host is already public,
    or no public hostname is known, the base is returned unchanged (apart
    from scheme and trailing slash normalization).

    Args:
        base_url: Configured CMS base URL
        public_hostname: Externally visible hostname of the site, if known
        internal_hosts: Extra container-internal hostnames

    Returns:
        Base URL without trailing slash
    """
    url = ensure_scheme(base_url)
    if not url or not public_hostname:
        return url

    parts = urlsplit(url)
    if not is_internal_host(parts.hostname, internal_hosts):
        return url

    # Strip any port the caller passed along with the hostname
    hostname = public_hostname.strip().split(":")[0]
    if not hostname:
        return url

    netloc = hostname if parts.port is None else f"{hostname}:{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment)).rstrip("/")


def resolve_public_base(
        configured: str,
        public_hostname: str | None = None,
        explicit_origin: str | None = None,
        internal_hosts: Iterable[str] = (),
) -> str:
    """
    Pick the CMS base used for URLs emitted into HTML.

    Precedence: explicit public origin, then the host-substituted
    configured base.
    """
    if explicit_origin:
        return ensure_scheme(explicit_origin)
    return normalize_cms_base(configured, public_hostname, internal_hosts)
