"""FastAPI application main module.

Defines the ServiceRec application, wires the routers, the request logging
middleware and the error handler that renders ServiceRecException subclasses
as JSON.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from servicerec import __version__
from servicerec.api.logging_config import RequestLoggingMiddleware, setup_logging
from servicerec.api.metrics import metrics_service
from servicerec.api.routes import recommend, segments
from servicerec.exceptions import ServiceRecException

# Configure module logger
logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "SERVICEREC_LOG_LEVEL"


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(os.environ.get(LOG_LEVEL_ENV, "INFO"))
    logger.info("ServiceRec API started", extra={"version": __version__})
    yield


# Create FastAPI application instance
app = FastAPI(
    title="ServiceRec API",
    description="Marketing service recommendations and client segmentation",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(recommend.router)
app.include_router(segments.router)


@app.exception_handler(ServiceRecException)
async def servicerec_exception_handler(
    request: Request, exc: ServiceRecException
) -> JSONResponse:
    """Render library errors with their own status code."""
    logger.warning(
        "Request rejected",
        extra={
            "path": str(request.url.path),
            "error_type": type(exc).__name__,
            "error": exc.message,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.get("/ping")
def ping() -> Dict[str, str]:
    """Health check endpoint.

    Example:
        >>> response = client.get("/ping")
        >>> assert response.json() == {"status": "ok"}
    """
    return {"status": "ok"}


@app.get("/metrics")
def metrics() -> Dict:
    """Pipeline run counters and latency since startup."""
    return metrics_service.get_metrics()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "servicerec.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
