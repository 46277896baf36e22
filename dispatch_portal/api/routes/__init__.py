"""
API routes package.
"""

from .branches import router as branches_router
from .health import router as health_router
from .requests import router as requests_router

__all__ = [
    "branches_router",
    "health_router",
    "requests_router",
]
