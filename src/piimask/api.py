"""FastAPI service exposing PII detection and redaction.

* Pydantic models capture request/response payloads.
* One :class:`~piimask.gateway.InferenceGateway` is loaded in the lifespan
  hook; a load failure aborts startup.
* Swagger UI (``/docs``) and ReDoc (``/redoc``) document each endpoint.

Run locally::

    uvicorn piimask.api:app --host 0.0.0.0 --port 8080

Or via the CLI::

    piimask serve --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import List, Literal, NoReturn, Optional

from fastapi import (
    APIRouter,
    Depends,
    FastAPI,
    HTTPException,
    Request,
    Response,
    Security,
    status,
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from prometheus_client import Counter, make_asgi_app
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from .core import detect_and_redact_document, detect_and_redact_text, detect_entities
from .errors import DocumentParseError, PiimaskError
from .gateway import InferenceGateway
from .health import run_readiness_checks
from .logging import get_logger
from .pipeline import RunConfig
from .settings import ServiceSettings, get_settings
from .types import InputText, PIIReplacementResponse, PIIResponse

logger = get_logger(__name__)
settings: ServiceSettings = get_settings()

auth_scheme = HTTPBearer(auto_error=False)

REQUESTS = Counter("piimask_requests_total", "API requests", ["route"])
FAILURES = Counter("piimask_failures_total", "Failed API requests", ["route", "error"])

_gateway: Optional[InferenceGateway] = None


def set_gateway(gateway: Optional[InferenceGateway]) -> None:
    """Install (or clear) the process-wide gateway."""
    global _gateway
    _gateway = gateway


def get_gateway() -> InferenceGateway:
    if _gateway is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Model not loaded"
        )
    return _gateway


class HealthResponse(BaseModel):
    """Canonical health endpoint payload."""

    status: Literal["ok"] = "ok"


class ReadinessCheckModel(BaseModel):
    """Single readiness check result."""

    name: str
    status: Literal["pass", "warn", "fail"]
    detail: Optional[str] = None
    required: bool


class ReadyResponse(BaseModel):
    """Aggregated readiness response."""

    ready: bool
    checks: List[ReadinessCheckModel]


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if _gateway is None:
        # ModelLoadError propagates and the server refuses to start.
        set_gateway(InferenceGateway.from_pretrained(get_settings()))
    yield


app = FastAPI(
    title="piimask",
    description="PII detection and redaction for text and PDF documents.",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "health", "description": "Service health and readiness probes."},
        {"name": "pii", "description": "Detection and redaction endpoints."},
    ],
)

if settings.cors_origins:
    allow_origins = ["*"] if "*" in settings.cors_origins else settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.mount("/metrics", make_asgi_app())


health_router = APIRouter(tags=["health"])
pii_router = APIRouter(tags=["pii"])


def require_auth(
    credentials: HTTPAuthorizationCredentials = Security(auth_scheme),
) -> None:
    """Simple bearer-token protection for managed cluster deployments."""

    token = get_settings().api_token
    if token is None:
        return
    if credentials is None or credentials.credentials != token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


def _fail(route: str, exc: PiimaskError) -> NoReturn:
    FAILURES.labels(route=route, error=type(exc).__name__).inc()
    if isinstance(exc, DocumentParseError):
        logger.warning(
            "Rejected input document", extra={"route": route, "error": str(exc)}
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    logger.error(
        "Request failed",
        extra={
            "route": route,
            "error": type(exc).__name__,
            "operation": exc.operation,
            "page": exc.page,
            "detail": exc.message,
        },
    )
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
    ) from exc


@health_router.get("/", response_class=PlainTextResponse)
def index() -> str:
    return "PII Detection"


@health_router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    REQUESTS.labels(route="health").inc()
    return HealthResponse()


@health_router.get("/livez", response_model=HealthResponse)
def livez() -> HealthResponse:
    return HealthResponse(status="ok")


@health_router.get("/readyz", response_model=ReadyResponse)
def readyz():
    cfg = get_settings()
    checks = run_readiness_checks(cfg, _gateway)
    ready = True
    payload: List[ReadinessCheckModel] = []
    for check in checks:
        payload.append(
            ReadinessCheckModel(
                name=check.name,
                status=check.status,
                detail=check.detail,
                required=check.required,
            )
        )
        if check.required and check.status == "fail":
            ready = False
    response = ReadyResponse(ready=ready, checks=payload)
    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=status_code, content=response.model_dump())


@pii_router.post("/detect_pii", response_model=PIIResponse)
def detect_pii(
    payload: InputText,
    auth: None = Depends(require_auth),
    gateway: InferenceGateway = Depends(get_gateway),
) -> PIIResponse:
    REQUESTS.labels(route="detect_pii").inc()
    try:
        return PIIResponse(entities=detect_entities(payload.text, gateway))
    except PiimaskError as exc:
        _fail("detect_pii", exc)


@pii_router.post("/detect_and_replace_pii", response_model=PIIReplacementResponse)
def detect_and_replace_pii(
    payload: InputText,
    auth: None = Depends(require_auth),
    gateway: InferenceGateway = Depends(get_gateway),
) -> PIIReplacementResponse:
    REQUESTS.labels(route="detect_and_replace_pii").inc()
    try:
        return detect_and_redact_text(payload.text, gateway)
    except PiimaskError as exc:
        _fail("detect_and_replace_pii", exc)


@pii_router.post(
    "/detect_and_replace_pii_pdf",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def detect_and_replace_pii_pdf(
    request: Request,
    auth: None = Depends(require_auth),
    gateway: InferenceGateway = Depends(get_gateway),
) -> Response:
    """Redact a raw PDF request body and return the redacted PDF bytes."""

    REQUESTS.labels(route="detect_and_replace_pii_pdf").inc()
    body = await request.body()
    cfg = RunConfig(workers=get_settings().page_workers, write_audit=False)
    try:
        out = await run_in_threadpool(detect_and_redact_document, body, gateway, cfg)
    except PiimaskError as exc:
        _fail("detect_and_replace_pii_pdf", exc)
    return Response(content=out, media_type="application/pdf")


app.include_router(health_router)
app.include_router(pii_router)


def run(
    host: Optional[str] = None,
    port: Optional[int] = None,
    reload: bool = False,
    workers: int = 1,
    log_level: str = "info",
) -> None:
    """Launch the API server via ``uvicorn``."""

    import uvicorn

    bind_host = host or settings.api_host
    bind_port = port or settings.api_port
    uvicorn.run(
        "piimask.api:app",
        host=bind_host,
        port=bind_port,
        reload=reload,
        workers=workers,
        log_level=log_level,
    )
