import logging

from fastapi import FastAPI, Response
from fastapi.responses import PlainTextResponse

from sockcheck.api_schemas import ConfigResponse, HealthResponse, SocketReportResponse
from sockcheck.checks.socket_probes import build_probes
from sockcheck.config import settings
from sockcheck.runner import CASE_TIMEOUT_MS, run

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger("sockcheck").setLevel(level)


configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Socket Conformance",
    version="1.0.0",
    description=(
        "Runs the raw socket conformance probes (plaintext, TLS, StartTLS and "
        "half-open policies) against a live peer and reports pass/fail per probe."
    ),
)


@app.get(
    "/",
    response_class=PlainTextResponse,
    tags=["sockets"],
    summary="Run Socket Probes",
    description="Runs every probe once; 200 if all passed, 500 otherwise.",
    responses={500: {"description": "At least one probe failed or timed out"}},
)
async def run_probes():
    report = await run()
    if not report.ok:
        failed = [result.name for result in report.results if result.outcome.failed]
        logger.warning("Socket probes failed: %s", ", ".join(failed))
    return PlainTextResponse(report.body, status_code=report.status_code)


@app.get(
    "/api/report",
    response_model=SocketReportResponse,
    tags=["sockets"],
    summary="Run Socket Probes (JSON)",
    description="Same run as `/`, returned as structured per-probe results.",
)
async def probe_report(response: Response):
    report = await run()
    response.status_code = report.status_code
    return {
        "ok": report.ok,
        "results": [
            {
                "name": result.name,
                "status": result.outcome.status,
                "reason": result.outcome.reason,
                "line": result.line,
            }
            for result in report.results
        ],
        "body": report.body,
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["system"],
    summary="Health Check",
    description="Liveness endpoint used by probes and orchestration.",
)
def health():
    return {"status": "ok"}


@app.get(
    "/config",
    response_model=ConfigResponse,
    tags=["system"],
    summary="Current Effective Config",
    description="Returns the probe target and the per-probe timeout.",
)
def config():
    return {
        "target_host": settings.TARGET_HOST,
        "case_timeout_ms": CASE_TIMEOUT_MS,
        "probes": [probe.name for probe in build_probes()],
    }
