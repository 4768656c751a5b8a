"""Utility helpers."""

from .directories import get_secure_app_directory

__all__ = ["get_secure_app_directory"]
