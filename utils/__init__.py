"""Shared utilities for the backend."""
from utils.logging import configure_logging

__all__ = [
    "configure_logging",
]
