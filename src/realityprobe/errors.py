from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from realityprobe.models import PassReport


class RealityProbeError(Exception):
    pass


class InvalidHostnameError(RealityProbeError):
    pass


class CandidateListUnavailable(RealityProbeError):
    """The candidate list could not be fetched or held no usable hostnames."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Candidate list unavailable from {source}: {reason}")
        self.source = source
        self.reason = reason


class CandidateProbeFailed(RealityProbeError):
    def __init__(self, domain: str, reason: str) -> None:
        super().__init__(f"{domain}: {reason}")
        self.domain = domain
        self.reason = reason


class NoCandidateSucceeded(RealityProbeError):
    """Every candidate in a pass timed out or errored.

    ``report`` is the complete pass so callers can still display the ranking.
    """

    def __init__(self, report: PassReport | None = None, total: int = 0) -> None:
        if report is not None:
            total = len(report.results)
        super().__init__(f"None of {total} candidate(s) completed a TLS handshake in time")
        self.report = report


class InvalidManualInput(RealityProbeError):
    pass
