"""
Now Screening - cached movie listings lookup service.

Logging is configured on package import so every submodule logs consistently.
"""
from now_screening.utils.logging import setup_logging

setup_logging()

__version__ = "0.1.0"
