"""
Shared helpers for the now_screening package.
"""
from now_screening.utils.logging import setup_logging, get_logger

__all__ = ["setup_logging", "get_logger"]
