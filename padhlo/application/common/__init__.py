"""
Application common module.

Contains the Result type used by use cases to report outcomes
without raising for expected failures.
"""

from .result import Failure, Result, Success

__all__ = ["Failure", "Result", "Success"]
