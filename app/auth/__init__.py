"""
Authentication package: login, registration and token refresh.
"""

from .routes import router

__all__ = ["router"]
