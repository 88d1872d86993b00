# ============================================================================
# EWM Stock Lookup
# API Routes Module
# ============================================================================

from app.api.stock import router as stock_router

__all__ = ["stock_router"]
