"""Hostname validation for candidate lists and operator input.

Candidate lists come from a remote, operator-controlled URL and are treated as
untrusted.  Every entry must look like a DNS name before it is used as a TLS
server-name-indication value.
"""

from __future__ import annotations

import ipaddress
import logging
import re
from urllib.parse import urlparse

from realityprobe.errors import InvalidHostnameError
from realityprobe.models import CandidateList

logger = logging.getLogger("realityprobe.hostname")

_LABEL_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")
_MAX_HOSTNAME_LENGTH = 253


def _has_control_chars(value: str) -> bool:
    return any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value)


def validate_hostname(raw: str) -> str:
    """Return *raw* as a usable SNI hostname or raise ``InvalidHostnameError``.

    Surrounding whitespace and one trailing dot are dropped; case is kept.

    Examples::

        >>> validate_hostname("  www.apple.com ")
        'www.apple.com'
        >>> validate_hostname("gateway.icloud.com.")
        'gateway.icloud.com'
    """
    host = raw.strip()
    if _has_control_chars(host):
        raise InvalidHostnameError(f"Hostname contains control characters: {host!r}")
    if not host:
        raise InvalidHostnameError("Hostname is empty")
    if any(ch.isspace() for ch in host):
        raise InvalidHostnameError(f"Hostname contains whitespace: {host!r}")

    if host.endswith("."):
        host = host[:-1]

    try:
        ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        pass
    else:
        raise InvalidHostnameError(f"IP addresses cannot be used as SNI: {host}")

    if not host or len(host) > _MAX_HOSTNAME_LENGTH:
        raise InvalidHostnameError(f"Hostname length out of range: {host!r}")

    labels = host.split(".")
    for label in labels:
        if not _LABEL_RE.match(label):
            raise InvalidHostnameError(f"Invalid hostname label {label!r} in {host!r}")

    if labels[-1].isdigit():
        raise InvalidHostnameError(f"Top-level label cannot be numeric: {host!r}")

    return host


def _extract_host(entry: str) -> str:
    """Pull the host out of URL-shaped entries, pass anything else through."""
    if "://" not in entry:
        return entry
    host = urlparse(entry).hostname
    if not host:
        raise InvalidHostnameError(f"Cannot extract host from {entry!r}")
    return host


def parse_candidate_list(text: str, source: str = "") -> CandidateList:
    """Parse a whitespace/newline separated list of hostnames.

    Lines starting with ``#`` are comments.  Duplicates and input order are
    kept.  Malformed entries are skipped with a warning.
    """
    domains: list[str] = []
    rejected: list[str] = []

    for line in text.splitlines():
        line = line.split("#", 1)[0]
        for entry in line.split():
            try:
                domains.append(validate_hostname(_extract_host(entry)))
            except InvalidHostnameError as exc:
                rejected.append(entry)
                logger.warning("skipping malformed candidate: %s", exc, extra={"entry": entry, "source": source})

    return CandidateList(source=source, domains=domains, rejected=rejected)
