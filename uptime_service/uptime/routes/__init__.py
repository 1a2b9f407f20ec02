from .dashboard import router as dashboard_router
from .status import router as status_router
from .health import router as health_router

__all__ = ["dashboard_router", "status_router", "health_router"]
