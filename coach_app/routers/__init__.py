"""
UNDO coach API routers.
"""

from coach_app.routers.coach import router as coach_router

__all__ = [
    "coach_router",
]
