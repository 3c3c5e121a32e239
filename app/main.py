from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.logging import configure_logging, CorrelationIdMiddleware
from .core.metrics import PromMiddleware, metrics_endpoint
from .routers.estimator import SESSION_HEADER, router as estimator_router

def _cors_origins() -> list[str]:
    origins = [o.strip() for o in settings.ALLOW_ORIGINS.split(",") if o.strip()]
    return origins or ["*"]

def create_app() -> FastAPI:
    """
    Build the estimator API. Tests swap the completion client through
    app.dependency_overrides, so nothing here touches the network.
    """
    configure_logging()

    app = FastAPI(
        title="Clothing Resale Estimator",
        version="1.0.0",
        description="Estimates the resale price of a clothing item with a hosted language model.",
    )

    # The form page runs in the browser and must read the session header back
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id", SESSION_HEADER],
    )
    app.add_middleware(CorrelationIdMiddleware)
    if settings.PROMETHEUS_ENABLED:
        app.add_middleware(PromMiddleware)
        app.add_route("/v1/metrics", metrics_endpoint, methods=["GET"])

    @app.get("/v1/health", tags=["meta"])
    def health():
        # Which upstream answers estimates: mock, openai or http
        return {"status": "ok", "provider": settings.COMPLETION_PROVIDER}

    @app.get("/v1/ping", tags=["meta"])
    def ping():
        return {"pong": True}

    app.include_router(estimator_router, prefix="/v1", tags=["estimator"])
    return app

app = create_app()
