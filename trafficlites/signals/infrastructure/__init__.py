"""
Infrastructure module initialization.
"""
from .repositories import SqlSignalRepository

__all__ = ["SqlSignalRepository"]
