"""
Application package initializer.

The service is organised into ``core`` (settings, logging, storage),
``schemas`` (Pydantic models), ``services`` (business logic) and
``api`` (versioned HTTP routers).
"""

from .main import app  # noqa: F401
