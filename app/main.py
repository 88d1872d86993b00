"""
============================================================================
EWM Stock Lookup v1.0.0
FastAPI Application Entry Point
============================================================================

Input Constraints: OData read requests from the Stock Lookup UI
Side Effects: Outbound reads against SAP EWM (API_WHSE_PHYSSTOCKPROD)

The service is stateless: each request is authorized, translated into one
upstream call and normalized. No caching, no writes.

============================================================================
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from dotenv import load_dotenv
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from app.api.stock import router as stock_router, get_stock_orchestrator, reset_stock_orchestrator
from services.stock_config import get_stock_config

# Load environment variables
load_dotenv()

# Configure module logger
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

SERVICE_PREFIX = "/odata/v4/stock"


# ============================================================================
# APPLICATION LIFESPAN
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup/shutdown events.

    Startup:
        - Load and validate configuration (fails startup when invalid)
        - Wire the stock orchestrator
    Shutdown:
        - Drop the orchestrator instance
    """
    print("=" * 60)
    print(f"EWM STOCK LOOKUP v{VERSION}")
    print("=" * 60)
    print(f"Startup Time: {datetime.now(timezone.utc).isoformat()}")

    try:
        config = get_stock_config(validate=True)
    except Exception as e:
        print(f"[CRITICAL] Configuration invalid: {e}")
        raise

    get_stock_orchestrator(config)

    print("[OK] Stock orchestrator initialized")
    print(f"     Destination: {config.destination_name}")
    print(f"     Authorization Enabled: {config.authorization_enabled}")
    print(f"     Default Page Size: {config.default_page_size}")
    if not config.authorization_enabled:
        print("[WARN] Stock type authorization is DISABLED")

    yield

    reset_stock_orchestrator()
    print("[OK] EWM Stock Lookup shut down")


# ============================================================================
# APPLICATION
# ============================================================================

app = FastAPI(
    title="EWM Stock Lookup",
    description="Backend-for-frontend for SAP EWM warehouse physical stock",
    version=VERSION,
    lifespan=lifespan,
)


# ============================================================================
# MIDDLEWARE
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors.
    """
    error_code = "SYS-500"
    logger.exception(f"[{error_code}] Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error_code": error_code,
            "message": "Internal server error. This incident has been logged.",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )


# ============================================================================
# ROUTERS
# ============================================================================

app.include_router(
    stock_router,
    prefix=SERVICE_PREFIX,
    tags=["Stock"]
)


# ============================================================================
# SYSTEM ENDPOINTS
# ============================================================================

@app.get(
    "/",
    summary="System Status",
    description="Returns the service status and configuration summary.",
    tags=["System"]
)
async def root():
    config = get_stock_config(validate=False)
    return {
        "system": "EWM Stock Lookup",
        "version": VERSION,
        "status": "operational",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": SERVICE_PREFIX,
        "configuration": config.to_dict(),
    }


@app.get(
    "/health",
    summary="Health Check",
    description="Lightweight health check for load balancers and monitoring.",
    tags=["System"]
)
async def health_check():
    return {"status": "healthy"}


@app.get(
    "/metrics",
    summary="Prometheus Metrics",
    description="Exposes Prometheus metrics for observability.",
    tags=["Observability"]
)
async def metrics():
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
