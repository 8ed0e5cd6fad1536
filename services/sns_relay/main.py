from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from .src.routers import sns
from .src.config import settings
from .src.logging import jlog
from .src.service import create_publisher
from .otel import init_tracing

# -----------------------
# Lifecycle hooks
# -----------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # One publisher per process; raising here aborts startup
    publisher = create_publisher(settings.gcp_project)
    app.state.publisher = publisher

    # Shared HTTP client for SubscribeURL confirmation
    httpx_client = httpx.AsyncClient(
        timeout=settings.confirm_timeout_s,
        follow_redirects=True,
        http2=True,
    )
    app.state.httpx_client = httpx_client

    jlog(
        event="startup",
        project_id=settings.gcp_project,
        topic=settings.topic_name,
        sns_arn_configured=bool(settings.sns_arn.strip()),
    )
    try:
        yield
    finally:
        await httpx_client.aclose()
        # Flush any batched messages before the instance goes away
        publisher.stop()

# -----------------------
# App
# -----------------------

app = FastAPI(title="SNS to Pub/Sub Relay", version="1.0.0", lifespan=lifespan)

@app.get("/health")
def health():
    return {"status": "ok", "service": settings.service_name}

app.include_router(sns.router)

if settings.tracing_enabled:
    tracer = init_tracing(
        app,
        service_name=settings.service_name,
        service_version="v1",
        environment=settings.environment,
        use_cloud_trace=settings.use_cloud_trace,
    )
