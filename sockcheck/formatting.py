from __future__ import annotations

from sockcheck.checks.results import Outcome


def format_status_line(name: str, outcome: Outcome) -> str:
    if outcome.status == "success":
        return f"[SUCCESS] {name}"
    if outcome.status == "timed_out":
        return f"[FAILED] {name}: Timed out!"
    return f"[FAILED] {name}: {outcome.reason}"
