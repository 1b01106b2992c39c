"""db: shared database library (SQLAlchemy) for the local transaction cache.

Public exports
--------------
- ``Base`` and ``metadata`` for schema creation
- ORM models in ``db.models.finance`` (re-exported for convenience)
- Engine/session helpers in ``db.client``
"""

from __future__ import annotations

from .models.finance import Base, SfSetting, SfTransaction

metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "SfSetting",
    "SfTransaction",
]
