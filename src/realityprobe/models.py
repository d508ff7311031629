from enum import StrEnum

from pydantic import BaseModel, Field, computed_field

from realityprobe.errors import NoCandidateSucceeded


class ProbeStatus(StrEnum):
    OK = "ok"
    TIMEOUT = "timeout"
    ERROR = "error"


class SelectionSource(StrEnum):
    MEASURED = "measured"
    MANUAL = "manual"


class ProbeResult(BaseModel):
    domain: str
    position: int = Field(ge=0)
    status: ProbeStatus
    latency_ms: float | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == ProbeStatus.OK and self.latency_ms is not None


class CandidateList(BaseModel):
    source: str
    domains: list[str] = Field(default_factory=list)
    rejected: list[str] = Field(default_factory=list)


class PassReport(BaseModel):
    """Outcome of one probe pass over the full candidate list.

    ``results`` is kept in input order; ``ranking`` and ``best`` are derived
    from it and never depend on the order probes completed in.
    """

    pass_id: str
    attempt: int = Field(default=1, ge=1)
    source: str = ""
    results: list[ProbeResult] = Field(default_factory=list)
    rejected: list[str] = Field(default_factory=list)
    duration_ms: int = 0

    @property
    def ranking(self) -> list[ProbeResult]:
        from realityprobe.prober import rank

        return rank(self.results)

    @computed_field
    @property
    def best(self) -> ProbeResult | None:
        from realityprobe.prober import select_best

        try:
            return select_best(self.results)
        except NoCandidateSucceeded:
            return None

    @computed_field
    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.succeeded)

    @computed_field
    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded


class Selection(BaseModel):
    domain: str
    source: SelectionSource
    latency_ms: float | None = None
    pass_id: str | None = None

    @computed_field
    @property
    def verified(self) -> bool:
        return self.source == SelectionSource.MEASURED
