"""Convert probe pass reports to CSV format.

One row per probed candidate, in ranking order. Failed candidates have an
empty latency and carry their error text.
"""

import csv
import io

from realityprobe.models import PassReport

_COLUMNS = ["rank", "position", "domain", "status", "latency_ms", "error", "best"]


def pass_report_to_csv(report: PassReport) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(_COLUMNS)
    best = report.best
    for rank, result in enumerate(report.ranking, start=1):
        writer.writerow(
            [
                rank,
                result.position,
                result.domain,
                result.status,
                f"{result.latency_ms:.1f}" if result.latency_ms is not None else "",
                result.error or "",
                "yes" if best is not None and result.position == best.position else "",
            ]
        )
    return buf.getvalue()
