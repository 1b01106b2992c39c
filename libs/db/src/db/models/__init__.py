"""Shared SQLAlchemy models registry for the tracker database.

Currently includes finance domain models used by ``smart_finance``.
"""

from .finance import Base, SfSetting, SfTransaction

__all__ = [
    "Base",
    "SfSetting",
    "SfTransaction",
]
