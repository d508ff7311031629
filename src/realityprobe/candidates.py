"""Candidate list retrieval.

The list is either served over HTTP(S) or read from a local file on hosts
that ship a pre-seeded pool.  Any failure here is fatal to the current probe
pass and is raised as ``CandidateListUnavailable``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import httpx

from realityprobe.errors import CandidateListUnavailable
from realityprobe.hostname import parse_candidate_list
from realityprobe.models import CandidateList

logger = logging.getLogger("realityprobe.candidates")

_USER_AGENT = "realityprobe/0.1"


def candidate_client(timeout: float) -> httpx.AsyncClient:
    """Create the HTTP client used to download candidate lists.

    - Short connect timeout (3 s or less)
    - Follows redirects (gist raw URLs redirect)
    - Certificate verification stays on: the list decides what we probe
    """
    connect_timeout = min(3.0, timeout)
    timeouts = httpx.Timeout(timeout, connect=connect_timeout)
    return httpx.AsyncClient(timeout=timeouts, follow_redirects=True, headers={"User-Agent": _USER_AGENT})


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


async def _download(source: str, timeout: float, client: httpx.AsyncClient | None) -> str:
    own_client = client is None
    if own_client:
        client = candidate_client(timeout)
    try:
        resp = await client.get(source)
    except httpx.HTTPError as exc:
        raise CandidateListUnavailable(source, f"{type(exc).__name__}: {exc}") from exc
    finally:
        if own_client:
            await client.aclose()

    if resp.status_code >= 400:
        raise CandidateListUnavailable(source, f"HTTP {resp.status_code}")
    # lists saved from Windows editors start with a BOM
    return resp.text.lstrip("\ufeff")


async def _read_file(source: str) -> str:
    path = Path(source).expanduser()
    try:
        return await asyncio.to_thread(path.read_text, encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise CandidateListUnavailable(source, f"{type(exc).__name__}: {exc}") from exc


async def fetch_candidates(
    source: str,
    *,
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> CandidateList:
    """Fetch and parse the candidate list from *source* (URL or file path)."""
    logger.info("fetching candidate list from %s", source, extra={"source": source})

    text = await _download(source, timeout, client) if _is_url(source) else await _read_file(source)
    if not text.strip():
        raise CandidateListUnavailable(source, "list is empty")

    candidates = parse_candidate_list(text, source=source)
    if not candidates.domains:
        raise CandidateListUnavailable(source, f"no valid hostnames ({len(candidates.rejected)} rejected)")

    logger.info(
        "loaded %d candidate(s) from %s",
        len(candidates.domains),
        source,
        extra={"source": source, "candidates": len(candidates.domains), "rejected": len(candidates.rejected)},
    )
    return candidates
