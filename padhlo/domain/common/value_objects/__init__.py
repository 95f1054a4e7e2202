"""Common value objects shared across all domain modules."""

from .ids import UserId

__all__ = ["UserId"]
