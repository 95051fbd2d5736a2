from __future__ import annotations

from typing import Literal
from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(description="Health status")


class ConfigResponse(BaseModel):
    target_host: str
    case_timeout_ms: int = Field(ge=1)
    probes: list[str]


class CaseResultResponse(BaseModel):
    name: str
    status: Literal["success", "failed", "timed_out"]
    reason: str | None = None
    line: str


class SocketReportResponse(BaseModel):
    ok: bool
    results: list[CaseResultResponse]
    body: str = Field(description="Status lines joined by newline")
