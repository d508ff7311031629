"""Prometheus metrics for realityprobe."""

from prometheus_client import REGISTRY, Counter, Histogram, write_to_textfile

PROBES_TOTAL = Counter(
    "realityprobe_probes_total",
    "TLS handshake probes by outcome",
    ["status"],
)

PROBE_LATENCY = Histogram(
    "realityprobe_probe_latency_seconds",
    "TLS handshake latency of successful probes",
    buckets=(0.025, 0.05, 0.1, 0.2, 0.3, 0.5, 0.75, 1.0, 2.0, 5.0),
)

PASSES_TOTAL = Counter(
    "realityprobe_passes_total",
    "Probe passes by outcome",
    ["outcome"],
)

PASS_DURATION = Histogram(
    "realityprobe_pass_duration_seconds",
    "Wall-clock duration of a full probe pass",
)


def write_metrics(path: str) -> None:
    """Dump the default registry for the node-exporter textfile collector."""
    write_to_textfile(path, REGISTRY)
