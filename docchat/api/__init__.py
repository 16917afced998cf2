"""
FastAPI Application Module

Provides the REST API for docchat.
"""

from .main import app

__all__ = ["app"]
