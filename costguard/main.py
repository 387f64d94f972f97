"""
Main FastAPI application bootstrap.
Configures middleware and includes routers.
"""
import logging
from typing import Dict

from fastapi import FastAPI

from costguard.core.config import config
from costguard.api.plan import router as plan_router
from costguard.middleware.request_size_limiter import RequestSizeLimiterMiddleware


logger = logging.getLogger(__name__)

# Validate configuration on startup
try:
    config.validate()
except ValueError as error:
    # Fail fast with a clear message
    raise RuntimeError(f"Configuration error: {error}") from error

logger.info(
    "Cost guard API starting: hours_per_month=%d, threshold=%s, max_body=%d bytes",
    config.HOURS_PER_MONTH,
    config.COST_THRESHOLD_USD,
    config.MAX_PLAN_BODY_SIZE,
)


app = FastAPI(
    title="Terraform Cost Guard",
    description="Monthly cost impact estimation for Terraform plans",
    version=config.APP_VERSION,
)

# Reject oversized plan documents before they reach the routes
app.add_middleware(RequestSizeLimiterMiddleware)

# Include routers
app.include_router(plan_router)


@app.get("/health")
async def health() -> Dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}
