from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Literal


OutcomeStatus = Literal["success", "failed", "timed_out"]


class ProbeFailure(Exception):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class Probe:
    name: str
    # Returns on success, raises ProbeFailure(reason) on failure.
    check: Callable[[], Awaitable[None]]


@dataclass(frozen=True)
class Outcome:
    status: OutcomeStatus
    reason: str | None = None

    @classmethod
    def success(cls) -> Outcome:
        return cls(status="success")

    @classmethod
    def failure(cls, reason: str) -> Outcome:
        return cls(status="failed", reason=reason)

    @classmethod
    def timed_out(cls) -> Outcome:
        return cls(status="timed_out")

    @property
    def failed(self) -> bool:
        return self.status != "success"


@dataclass(frozen=True)
class CaseResult:
    name: str
    outcome: Outcome
    line: str


@dataclass
class Report:
    results: list[CaseResult] = field(default_factory=list)

    def add(self, result: CaseResult) -> None:
        self.results.append(result)

    @property
    def lines(self) -> list[str]:
        return [result.line for result in self.results]

    @property
    def any_failed(self) -> bool:
        return any(result.outcome.failed for result in self.results)

    @property
    def ok(self) -> bool:
        return not self.any_failed

    @property
    def body(self) -> str:
        return "\n".join(self.lines)

    @property
    def status_code(self) -> int:
        return 500 if self.any_failed else 200
