"""
Route modules for the Workflow API.
"""

from .execution import router as execution_router

__all__ = [
    "execution_router",
]
