"""Operator interaction loop around probe passes.

After each pass the operator can accept the best measured domain (empty
input), re-probe (``R``), or type a domain by hand (``M``).  A re-probe
starts from an empty measurement set; earlier passes survive only in
``SessionState.history``.  A manual domain is never probed and is returned
as an unverified selection.

The loop itself is synchronous.  Each pass gets its own ``asyncio.run`` and
the prompt only runs once that loop is closed, so Ctrl-C at the prompt is a
plain ``KeyboardInterrupt`` from ``input()``.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum

from realityprobe.errors import (
    CandidateListUnavailable,
    InvalidHostnameError,
    InvalidManualInput,
    NoCandidateSucceeded,
    RealityProbeError,
)
from realityprobe.formatters.text import format_ranking, format_selection
from realityprobe.hostname import validate_hostname
from realityprobe.models import PassReport, ProbeResult, Selection, SelectionSource

logger = logging.getLogger("realityprobe.session")

# run_pass(attempt) -> report of a fresh pass
PassRunner = Callable[[int], Awaitable[PassReport]]
Prompt = Callable[[str], str]
Echo = Callable[[str], None]

CHOICE_PROMPT = "[Enter] use the fastest domain, R = probe again, M = enter a domain manually: "
MANUAL_PROMPT = "Custom Reality domain (must be reachable directly on 443): "


class Choice(StrEnum):
    ACCEPT = "accept"
    RETRY = "retry"
    MANUAL = "manual"


_CHOICES: dict[str, Choice] = {
    "": Choice.ACCEPT,
    "r": Choice.RETRY,
    "retry": Choice.RETRY,
    "m": Choice.MANUAL,
    "manual": Choice.MANUAL,
}


def parse_choice(raw: str) -> Choice | None:
    """Map operator input to a transition, ``None`` for anything unrecognised."""
    return _CHOICES.get(raw.strip().lower())


def manual_selection(raw: str) -> Selection:
    """Build an unverified selection from operator input.

    Only the syntax is checked; the domain is not probed.
    """
    try:
        domain = validate_hostname(raw)
    except InvalidHostnameError as exc:
        raise InvalidManualInput(str(exc)) from exc
    return Selection(domain=domain, source=SelectionSource.MANUAL)


def _echo_stderr(text: str) -> None:
    print(text, file=sys.stderr, flush=True)


def _prompt_stderr(text: str) -> str:
    # input() would write the prompt to stdout, which carries the result
    sys.stderr.write(text)
    sys.stderr.flush()
    return input()


@dataclass
class SessionState:
    report: PassReport | None = None
    error: RealityProbeError | None = None
    history: list[PassReport] = field(default_factory=list)
    attempts: int = 0
    selection: Selection | None = None

    @property
    def best(self) -> ProbeResult | None:
        return self.report.best if self.report is not None else None

    @property
    def last_report(self) -> PassReport | None:
        return self.history[-1] if self.history else None


class ProbeSession:
    def __init__(self, run_pass: PassRunner, *, prompt: Prompt = _prompt_stderr, echo: Echo = _echo_stderr) -> None:
        self._run_pass = run_pass
        self._prompt = prompt
        self._echo = echo
        self.state = SessionState()

    def probe(self) -> SessionState:
        """Run a fresh pass; the previous pass's measurements are dropped."""
        state = self.state
        state.attempts += 1
        state.report = None
        state.error = None

        try:
            report = asyncio.run(self._run_pass(state.attempts))
        except CandidateListUnavailable as exc:
            state.error = exc
            logger.warning("candidate list unavailable: %s", exc.reason, extra={"source": exc.source})
            self._echo(f"Could not load candidate domains: {exc.reason}")
            return state
        except NoCandidateSucceeded as exc:
            state.error = exc
            if exc.report is not None:
                state.report = exc.report
                state.history.append(exc.report)
                self._echo(format_ranking(exc.report))
            logger.warning("no candidate completed a handshake", extra={"attempt": state.attempts})
            self._echo(f"{exc}.")
            return state

        state.report = report
        state.history.append(report)
        self._echo(format_ranking(report))
        best = report.best
        if best is not None:
            self._echo(f"Fastest: {best.domain} ({best.latency_ms:.0f} ms)")
        return state

    def _ask_manual(self) -> Selection:
        while True:
            try:
                return manual_selection(self._prompt(MANUAL_PROMPT))
            except InvalidManualInput as exc:
                self._echo(f"Invalid domain: {exc}")

    def _finish(self, selection: Selection) -> Selection:
        self.state.selection = selection
        logger.info(
            "selected %s",
            selection.domain,
            extra={"domain": selection.domain, "selection_source": selection.source, "verified": selection.verified},
        )
        self._echo(f"Reality domain: {format_selection(selection)}")
        return selection

    def _measured(self) -> Selection | None:
        best = self.state.best
        if best is None:
            return None
        return Selection(
            domain=best.domain,
            source=SelectionSource.MEASURED,
            latency_ms=best.latency_ms,
            pass_id=self.state.report.pass_id,
        )

    def run(self) -> Selection:
        if self.probe().error is not None:
            self._echo("Probe again with R or enter a domain with M.")
        while True:
            match parse_choice(self._prompt(CHOICE_PROMPT)):
                case Choice.ACCEPT:
                    selection = self._measured()
                    if selection is None:
                        self._echo("No measured domain to accept. Use R or M.")
                        continue
                case Choice.RETRY:
                    if self.probe().error is not None:
                        self._echo("Probe again with R or enter a domain with M.")
                    continue
                case Choice.MANUAL:
                    selection = self._ask_manual()
                case _:
                    self._echo("Invalid option, try again.")
                    continue
            return self._finish(selection)

    def run_unattended(self) -> Selection:
        """Single pass, no operator: take the best domain or raise the pass error."""
        state = self.probe()
        if state.error is not None:
            raise state.error
        selection = self._measured()
        if selection is None:
            raise NoCandidateSucceeded(state.report)
        return self._finish(selection)
