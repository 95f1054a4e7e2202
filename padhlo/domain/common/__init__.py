"""
Domain common module.

Contains base classes for domain modeling:
- ValueObject: Immutable objects defined by their attributes
- DomainError and its subclasses
"""

from .exceptions import (
    BusinessRuleViolationError,
    DomainError,
    EntityNotFoundError,
    ValidationError,
)
from .value_object import ValueObject

__all__ = [
    "BusinessRuleViolationError",
    "DomainError",
    "EntityNotFoundError",
    "ValidationError",
    "ValueObject",
]
