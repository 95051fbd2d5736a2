from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from sockcheck.checks import deadline
from sockcheck.checks.results import CaseResult, Outcome, Probe, ProbeFailure, Report
from sockcheck.checks.socket_probes import build_probes
from sockcheck.formatting import format_status_line


logger = logging.getLogger(__name__)

CASE_TIMEOUT_MS = 5_000


async def _check_outcome(probe: Probe) -> Outcome:
    try:
        await probe.check()
    except ProbeFailure as exc:
        return Outcome.failure(exc.reason)
    except Exception as exc:
        # A broken check is still one failed case, never a failed run.
        return Outcome.failure(f"{exc.__class__.__name__}: {exc}")
    return Outcome.success()


async def race(probe: Probe, timeout_ms: int = CASE_TIMEOUT_MS) -> Outcome:
    """Run ``probe`` against a deadline; the first to finish decides the outcome.

    A check that finishes first wins even if the deadline expired in the same
    loop iteration. When the deadline wins, the check task is cancelled and
    its result is never looked at; cancellation unwinds the probe's
    ``async with`` so its socket gets closed.
    """
    check_task = asyncio.create_task(_check_outcome(probe), name=f"probe:{probe.name}")
    deadline_task = asyncio.create_task(deadline.wait(timeout_ms), name=f"deadline:{probe.name}")

    done, _ = await asyncio.wait(
        {check_task, deadline_task},
        return_when=asyncio.FIRST_COMPLETED,
    )
    if check_task in done:
        deadline_task.cancel()
        return check_task.result()

    check_task.cancel()
    return Outcome.timed_out()


async def run_case(
    probe: Probe,
    *,
    timeout_ms: int = CASE_TIMEOUT_MS,
    log: logging.Logger | None = None,
) -> CaseResult:
    log = log or logger
    log.info("Running Test %s", probe.name)
    outcome = await race(probe, timeout_ms)
    line = format_status_line(probe.name, outcome)
    log.info("%s", line)
    return CaseResult(name=probe.name, outcome=outcome, line=line)


async def run(
    probes: Sequence[Probe] | None = None,
    *,
    timeout_ms: int = CASE_TIMEOUT_MS,
    log: logging.Logger | None = None,
) -> Report:
    if probes is None:
        probes = build_probes()

    report = Report()
    for probe in probes:
        report.add(await run_case(probe, timeout_ms=timeout_ms, log=log))
    return report
