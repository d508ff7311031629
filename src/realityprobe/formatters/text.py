"""Human-readable rendering of probe passes and selections."""

from realityprobe.models import PassReport, ProbeResult, Selection

_DOMAIN_WIDTH_MIN = 12


def _latency_cell(result: ProbeResult) -> str:
    if result.succeeded:
        return f"{result.latency_ms:.0f} ms"
    return str(result.status)


def format_ranking(report: PassReport) -> str:
    """Render the ranking as an aligned table, best candidate marked with ``*``."""
    if not report.results:
        return "  (no candidates probed)"

    best = report.best
    width = max(_DOMAIN_WIDTH_MIN, *(len(r.domain) for r in report.results))
    lines = []
    for result in report.ranking:
        marker = "*" if best is not None and result.position == best.position else " "
        lines.append(f" {marker} {result.domain:<{width}}  {_latency_cell(result):>8}")

    summary = f"  {report.succeeded} ok, {report.failed} failed in {report.duration_ms} ms"
    if report.rejected:
        summary += f", {len(report.rejected)} malformed entr{'y' if len(report.rejected) == 1 else 'ies'} skipped"
    lines.append(summary)
    return "\n".join(lines)


def format_selection(selection: Selection) -> str:
    if selection.verified:
        return f"{selection.domain} ({selection.latency_ms:.0f} ms, measured)"
    return f"{selection.domain} (manual, unverified)"
