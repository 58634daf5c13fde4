from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI

from echoservice.config import Settings, settings
from echoservice.greeting import router as greeting_router
from echoservice.metrics import MetricsMiddleware, metrics_endpoint
from echoservice.observability import RequestIdMiddleware, setup_json_logging

APP_NAME = "echoservice"
APP_DESC = "A greeting service that runs under a notify-style process supervisor."
APP_VERSION_FILE = Path(__file__).resolve().parents[1] / "VERSION"


def read_version_fallback() -> str:
    try:
        return APP_VERSION_FILE.read_text(encoding="utf-8").strip()
    except Exception:
        return "0.0.0"


def create_app(cfg: Settings | None = None) -> FastAPI:
    """Build the route table. Only /hello is routed; /metrics is opt-in."""
    cfg = cfg or settings
    log = setup_json_logging(APP_NAME, cfg.log_level)

    app = FastAPI(
        title=APP_NAME,
        description=APP_DESC,
        version=read_version_fallback(),
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.include_router(greeting_router)

    if cfg.metrics_enabled:
        app.add_middleware(
            MetricsMiddleware, skip_predicate=lambda req: req.url.path == "/metrics"
        )
        app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], include_in_schema=False)

    # added last so it wraps everything, metrics included
    app.add_middleware(RequestIdMiddleware, logger=log)
    return app


app = create_app()
