"""
API routers for the AI news podcast backend.
"""

from .headlines import router as headlines_router
from .podcasts import router as podcasts_router

__all__ = [
    'headlines_router',
    'podcasts_router'
]
