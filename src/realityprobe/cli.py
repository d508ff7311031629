"""Command-line entry point.

Prompts, the ranking table and JSON logs go to stderr; stdout carries only
the selected domain (or the selection as JSON) so install scripts can do::

    REALITY_DOMAIN=$(realityprobe)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from realityprobe.config import MAX_CONCURRENT_PROBES, settings
from realityprobe.errors import CandidateListUnavailable, NoCandidateSucceeded
from realityprobe.formatters.csv import pass_report_to_csv
from realityprobe.logging import setup_logging
from realityprobe.metrics import write_metrics
from realityprobe.models import PassReport, Selection
from realityprobe.prober import ProbeFn, probe_pass, probe_tls
from realityprobe.session import PassRunner, ProbeSession

logger = logging.getLogger("realityprobe.cli")

EXIT_OK = 0
EXIT_NO_CANDIDATE = 1
EXIT_LIST_UNAVAILABLE = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="realityprobe",
        description="Pick the Reality camouflage domain with the fastest TLS handshake.",
    )
    parser.add_argument(
        "--source",
        default=settings.domain_list_url,
        help="URL or file with whitespace-separated candidate domains",
    )
    parser.add_argument("--port", type=int, default=settings.probe_port, help="TLS port to probe (default: %(default)s)")
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.probe_timeout,
        help="per-candidate handshake timeout in seconds (default: %(default)s)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=settings.max_concurrent_probes,
        help=f"maximum handshakes in flight, 1-{MAX_CONCURRENT_PROBES} (default: %(default)s)",
    )
    parser.add_argument("-y", "--yes", action="store_true", help="accept the fastest domain without prompting")
    parser.add_argument("--format", choices=["text", "json"], default="text", help="stdout format")
    parser.add_argument(
        "--report",
        type=Path,
        help="write the last pass report; JSON when the file ends in .json, CSV otherwise",
    )
    parser.add_argument("--metrics-file", type=Path, help="write Prometheus metrics in text format")
    parser.add_argument("--log-level", default=None, help="override REALITYPROBE_LOG_LEVEL")
    return parser


def _validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if not 1 <= args.port <= 65535:
        parser.error(f"--port must be between 1 and 65535, got {args.port}")
    if args.timeout <= 0:
        parser.error(f"--timeout must be positive, got {args.timeout}")
    if not 1 <= args.concurrency <= MAX_CONCURRENT_PROBES:
        parser.error(f"--concurrency must be between 1 and {MAX_CONCURRENT_PROBES}, got {args.concurrency}")


def _pass_runner(args: argparse.Namespace, probe: ProbeFn) -> PassRunner:
    async def run(attempt: int) -> PassReport:
        return await probe_pass(
            args.source,
            port=args.port,
            timeout=args.timeout,
            concurrency=args.concurrency,
            fetch_timeout=settings.fetch_timeout,
            probe=probe,
            attempt=attempt,
        )

    return run


def _write_report(path: Path, report: PassReport) -> None:
    if path.suffix.lower() == ".json":
        path.write_text(report.model_dump_json(indent=2) + "\n", encoding="utf-8")
    else:
        path.write_text(pass_report_to_csv(report), encoding="utf-8")


def _emit(selection: Selection, fmt: str) -> None:
    if fmt == "json":
        print(selection.model_dump_json())
    else:
        print(selection.domain)


def main(argv: list[str] | None = None, *, probe: ProbeFn = probe_tls) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _validate_args(parser, args)
    setup_logging(args.log_level)

    session = ProbeSession(_pass_runner(args, probe))
    try:
        selection = session.run_unattended() if args.yes else session.run()
    except CandidateListUnavailable as exc:
        logger.error("candidate list unavailable: %s", exc.reason, extra={"source": exc.source})
        return EXIT_LIST_UNAVAILABLE
    except NoCandidateSucceeded as exc:
        logger.error("%s", exc)
        return EXIT_NO_CANDIDATE
    except (KeyboardInterrupt, EOFError):
        logger.warning("interrupted, no domain selected")
        return EXIT_INTERRUPTED
    finally:
        report = session.state.last_report
        if args.report is not None and report is not None:
            _write_report(args.report, report)
        if args.metrics_file is not None:
            write_metrics(str(args.metrics_file))

    if not selection.verified:
        logger.warning(
            "using unverified domain %s: it was entered manually and never probed",
            selection.domain,
            extra={"domain": selection.domain},
        )
    _emit(selection, args.format)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
