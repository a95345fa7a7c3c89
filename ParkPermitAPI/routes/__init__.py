from .users import router as users_router
from .parks import router as parks_router
from .applications import router as applications_router
from .invoices import router as invoices_router
from .catalog import router as catalog_router
from .dashboard import router as dashboard_router
from .permits import router as permits_router

# You can list all the routers here
__all__ = [
    "users_router",
    "parks_router",
    "applications_router",
    "invoices_router",
    "catalog_router",
    "dashboard_router",
    "permits_router",
]
