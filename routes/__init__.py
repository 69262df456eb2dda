# Routes package __init__.py - re-exports routers for main.py convenience
from .review import router as review_router
from .sessions import router as sessions_router
from .stats import router as stats_router
from .notifications import router as notifications_router
from .quota import router as quota_router
from .packages import router as packages_router
from .maintenance import router as maintenance_router

__all__ = [
    'review_router', 'sessions_router', 'stats_router', 'notifications_router',
    'quota_router', 'packages_router', 'maintenance_router',
]
