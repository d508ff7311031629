"""TLS handshake latency prober.

One probe pass fans out a handshake attempt per candidate through a bounded
semaphore, waits for every attempt to resolve, then reduces the outcomes with
a deterministic arg-min.  The reduction only looks at (position, status,
latency) so the selected domain is the same no matter which attempts finished
first.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import socket
import ssl
import time
import uuid
from collections.abc import Callable, Coroutine, Iterable, Sequence
from typing import Any

import httpx

from realityprobe.candidates import fetch_candidates
from realityprobe.errors import CandidateListUnavailable, CandidateProbeFailed, NoCandidateSucceeded
from realityprobe.logging import pass_ctx
from realityprobe.metrics import PASS_DURATION, PASSES_TOTAL, PROBE_LATENCY, PROBES_TOTAL
from realityprobe.models import PassReport, ProbeResult, ProbeStatus

logger = logging.getLogger("realityprobe.prober")

# probe(domain, port, timeout) -> handshake latency in milliseconds
ProbeFn = Callable[[str, int, float], Coroutine[Any, Any, float]]


@functools.cache
def _handshake_context() -> ssl.SSLContext:
    """Client context for latency probes: no certificate or hostname checks."""
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


async def probe_tls(domain: str, port: int, timeout: float) -> float:
    """Complete a TLS handshake with ``domain`` as SNI and return its latency in ms.

    The timer covers DNS resolution, TCP connect and the handshake, matching
    what ``timeout 1 openssl s_client -connect d:443 -servername d`` measures.
    The connection is aborted right after the handshake.
    """
    start = time.monotonic()
    try:
        _, writer = await asyncio.open_connection(
            domain,
            port,
            ssl=_handshake_context(),
            server_hostname=domain,
            ssl_handshake_timeout=timeout,
        )
    except ssl.SSLError as exc:
        raise CandidateProbeFailed(domain, f"TLS handshake failed: {exc}") from exc
    except socket.gaierror as exc:
        raise CandidateProbeFailed(domain, f"DNS resolution failed: {exc}") from exc
    except OSError as exc:
        raise CandidateProbeFailed(domain, f"connection failed: {exc}") from exc

    elapsed_ms = (time.monotonic() - start) * 1000
    writer.transport.abort()
    return elapsed_ms


async def _run_probe(
    probe: ProbeFn,
    domain: str,
    position: int,
    port: int,
    timeout: float,
    semaphore: asyncio.Semaphore,
) -> ProbeResult:
    async with semaphore:
        start = time.monotonic()
        try:
            latency_ms = await asyncio.wait_for(probe(domain, port, timeout), timeout=timeout)
        except TimeoutError:
            latency_ms = None
        except CandidateProbeFailed as exc:
            PROBES_TOTAL.labels(status=ProbeStatus.ERROR).inc()
            logger.info(
                "%s failed: %s",
                domain,
                exc.reason,
                extra={"domain": domain, "position": position, "status": ProbeStatus.ERROR, "error": exc.reason},
            )
            return ProbeResult(domain=domain, position=position, status=ProbeStatus.ERROR, error=exc.reason)
        except Exception as exc:
            duration_ms = int((time.monotonic() - start) * 1000)
            PROBES_TOTAL.labels(status=ProbeStatus.ERROR).inc()
            logger.error(
                "%s ERROR after %dms: %s: %s",
                domain,
                duration_ms,
                type(exc).__name__,
                exc,
                exc_info=True,
                extra={"domain": domain, "position": position, "error": str(exc), "error_type": type(exc).__name__},
            )
            return ProbeResult(
                domain=domain, position=position, status=ProbeStatus.ERROR, error=f"{type(exc).__name__}: {exc}"
            )

    if latency_ms is None or latency_ms >= timeout * 1000:
        PROBES_TOTAL.labels(status=ProbeStatus.TIMEOUT).inc()
        logger.info(
            "%s TIMEOUT (budget was %.1fs)",
            domain,
            timeout,
            extra={"domain": domain, "position": position, "status": ProbeStatus.TIMEOUT},
        )
        return ProbeResult(
            domain=domain, position=position, status=ProbeStatus.TIMEOUT, error=f"no handshake within {timeout}s"
        )

    PROBES_TOTAL.labels(status=ProbeStatus.OK).inc()
    PROBE_LATENCY.observe(latency_ms / 1000)
    logger.info(
        "%s: %.0f ms",
        domain,
        latency_ms,
        extra={"domain": domain, "position": position, "status": ProbeStatus.OK, "latency_ms": round(latency_ms, 1)},
    )
    return ProbeResult(domain=domain, position=position, status=ProbeStatus.OK, latency_ms=latency_ms)


def _ranking_key(result: ProbeResult) -> tuple[int, float, int]:
    if result.succeeded:
        return (0, result.latency_ms, result.position)
    return (1, 0.0, result.position)


def rank(results: Iterable[ProbeResult]) -> list[ProbeResult]:
    """Successes by latency (input order on ties), then failures in input order."""
    return sorted(results, key=_ranking_key)


def select_best(results: Iterable[ProbeResult]) -> ProbeResult:
    """Return the successful result with the lowest latency, earliest position on ties."""
    results = list(results)
    successes = [r for r in results if r.succeeded]
    if not successes:
        raise NoCandidateSucceeded(total=len(results))
    return min(successes, key=_ranking_key)


async def run_pass(
    candidates: Sequence[str],
    *,
    port: int,
    timeout: float,
    concurrency: int,
    probe: ProbeFn = probe_tls,
    attempt: int = 1,
    source: str = "",
    rejected: Sequence[str] = (),
) -> PassReport:
    """Probe every candidate once and return the pass report.

    Individual failures and timeouts are recorded in the report; they never
    abort the pass.
    """
    pass_id = uuid.uuid4().hex[:12]
    token = pass_ctx.set({"pass_id": pass_id, "attempt": attempt})
    try:
        logger.info(
            "probing %d candidate(s) on port %d (timeout=%.1fs, concurrency=%d)",
            len(candidates),
            port,
            timeout,
            concurrency,
            extra={"candidates": len(candidates), "port": port, "probe_timeout": timeout, "concurrency": concurrency},
        )
        semaphore = asyncio.Semaphore(concurrency)
        start = time.monotonic()
        # gather returns outcomes in submission order, which is the input order
        results: list[ProbeResult] = await asyncio.gather(
            *[
                _run_probe(probe, domain, position, port, timeout, semaphore)
                for position, domain in enumerate(candidates)
            ]
        )
        duration_s = time.monotonic() - start
        PASS_DURATION.observe(duration_s)

        report = PassReport(
            pass_id=pass_id,
            attempt=attempt,
            source=source,
            results=results,
            rejected=list(rejected),
            duration_ms=int(duration_s * 1000),
        )
        best = report.best
        logger.info(
            "pass finished in %dms: %d ok, %d failed, best %s",
            report.duration_ms,
            report.succeeded,
            report.failed,
            f"{best.domain} ({best.latency_ms:.0f} ms)" if best else "none",
            extra={
                "duration_ms": report.duration_ms,
                "ok": report.succeeded,
                "failed": report.failed,
                "best": best.domain if best else None,
            },
        )
        return report
    finally:
        pass_ctx.reset(token)


async def probe_pass(
    source: str,
    *,
    port: int,
    timeout: float,
    concurrency: int,
    fetch_timeout: float,
    probe: ProbeFn = probe_tls,
    attempt: int = 1,
    client: httpx.AsyncClient | None = None,
) -> PassReport:
    """Fetch a fresh candidate list and probe it.

    Raises ``CandidateListUnavailable`` when the list cannot be loaded and
    ``NoCandidateSucceeded`` (carrying the report) when nothing answered.
    """
    try:
        candidates = await fetch_candidates(source, timeout=fetch_timeout, client=client)
    except CandidateListUnavailable:
        PASSES_TOTAL.labels(outcome="list_unavailable").inc()
        raise

    report = await run_pass(
        candidates.domains,
        port=port,
        timeout=timeout,
        concurrency=concurrency,
        probe=probe,
        attempt=attempt,
        source=source,
        rejected=candidates.rejected,
    )
    if report.best is None:
        PASSES_TOTAL.labels(outcome="no_candidate").inc()
        raise NoCandidateSucceeded(report)

    PASSES_TOTAL.labels(outcome="selected").inc()
    return report
