"""ORM models for the statement import tables (``si_*``)."""

from .finance import Base, SiAccount, SiCategory, SiRule, SiTransaction

__all__ = [
    "Base",
    "SiAccount",
    "SiCategory",
    "SiRule",
    "SiTransaction",
]
