"""
API module for the policy & claims engine.
"""

from app.api.routes import router

__all__ = ["router"]
