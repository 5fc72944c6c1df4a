"""
PackCheck API.

    uvicorn packcheck.main:app --port 8000
"""

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from packcheck import __version__
from packcheck.core import configure_cors, lifespan
from packcheck.core.health import probe_all
from packcheck.routers import (
    cron_router,
    order_events_router,
    orders_router,
    webhooks_router,
    workflow_router,
)
from shared.config.settings import settings
from shared.infrastructure.correlation import CorrelationIdMiddleware

app = FastAPI(
    title="PackCheck API",
    description="Order lifecycle engine: intake, weight and photo verification, audit trail",
    version=__version__,
    lifespan=lifespan,
)

configure_cors(app)
app.add_middleware(CorrelationIdMiddleware)

for router in (orders_router, order_events_router, webhooks_router, cron_router, workflow_router):
    app.include_router(router)


@app.get("/api/health")
def health_check():
    """Liveness: the process is up. Touches no dependency."""
    return {"status": "ok", "service": "packcheck", "version": __version__}


@app.get("/api/health/detailed")
async def detailed_health_check():
    """Readiness: database and Redis reachable. 503 otherwise."""
    results = await probe_all()
    healthy = all(result.healthy for result in results)
    body = {
        "status": "ok" if healthy else "degraded",
        "service": "packcheck",
        "environment": settings.environment,
        "dependencies": {result.name: result.as_dict() for result in results},
    }
    return body if healthy else JSONResponse(body, status_code=503)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("packcheck.main:app", host="0.0.0.0", port=settings.rest_api_port)
