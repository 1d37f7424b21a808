"""db: SQLAlchemy models and engine/session helpers for statement imports.

Public exports
--------------
- ``Base`` and ``metadata`` (``metadata.create_all(engine)`` bootstraps a schema)
- ORM models in ``db.models.finance`` (re-exported for convenience)
- Engine/session helpers in ``db.client``
"""

from __future__ import annotations

from .models.finance import Base, SiAccount, SiCategory, SiRule, SiTransaction

metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "SiAccount",
    "SiCategory",
    "SiRule",
    "SiTransaction",
]
