"""Infrastructure readiness checks for API / Kubernetes probes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from .settings import ServiceSettings


@dataclass
class HealthCheckResult:
    name: str
    status: str  # "pass" | "fail" | "warn"
    detail: Optional[str] = None
    required: bool = True


def _check_model(gateway: Any) -> HealthCheckResult:
    if gateway is None:
        return HealthCheckResult(name="model", status="fail", detail="Model not loaded")
    if len(gateway.labels) == 0:
        return HealthCheckResult(name="model", status="warn", detail="Empty label table")
    return HealthCheckResult(name="model", status="pass")


def _check_pdf_backend() -> HealthCheckResult:
    try:
        import fitz

        version = getattr(fitz, "VersionBind", None)
    except Exception as exc:  # pragma: no cover - depends on runtime
        return HealthCheckResult(name="pymupdf", status="fail", detail=str(exc))
    return HealthCheckResult(name="pymupdf", status="pass", detail=version, required=False)


def run_readiness_checks(settings: ServiceSettings, gateway: Any) -> List[HealthCheckResult]:
    checks: List[HealthCheckResult] = []
    if settings.readiness_check_model:
        checks.append(_check_model(gateway))
    checks.append(_check_pdf_backend())
    return checks
