"""
Field Placement API
FastAPI wrapper around the placement geometry engine (validation,
percentage/pixel conversion, conflict detection).

Install dependencies:
pip install -e .

Run server:
uvicorn main:app --host 0.0.0.0 --port 8000
"""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os
import time
import uuid

from core.errors import CoordinateContractError
from schemas.position import HealthCheck
from settings import get_settings

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ============================================================================
# FASTAPI APP
# ============================================================================

app = FastAPI(
    title="Field Placement API",
    description="Validation, coordinate conversion and conflict detection for placed fields",
    version="1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)


@app.middleware("http")
async def request_timing_middleware(request: Request, call_next):
    """Log method, path, status and latency of every request."""
    request_id = str(uuid.uuid4())[:8]
    started = time.time()

    response = await call_next(request)

    latency_ms = round((time.time() - started) * 1000, 2)
    logger.info(
        f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} ({latency_ms} ms)"
    )
    return response


ALLOWED_ORIGINS = settings.get_origins_list()

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CoordinateContractError)
async def contract_error_handler(request: Request, exc: CoordinateContractError):
    # Caller bug (missing page dims, mismatched arrays, oversized batch)
    logger.warning(f"Contract violation on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )

# ============================================================================
# ENDPOINTS
# ============================================================================

@app.get("/health", response_model=HealthCheck)
async def health_check() -> HealthCheck:
    """Health check endpoint"""
    policy = settings.conflict_policy()
    return HealthCheck(
        ok=True,
        max_positions=policy.max_positions,
        overlap_threshold=policy.default_threshold,
    )


from routers import positions as positions_router
app.include_router(positions_router.router)


@app.on_event("startup")
async def startup_event():
    limits = settings.coordinate_limits()
    logger.info("Field Placement API starting up...")
    logger.info(
        f"Limits: width {limits.min_width}-{limits.max_width}%, "
        f"height {limits.min_height}-{limits.max_height}%, "
        f"pages 1-{limits.max_page_number}"
    )
    logger.info(f"Allowed origins: {ALLOWED_ORIGINS}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Field Placement API shutting down...")


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run("main:app", host="0.0.0.0", port=port)
