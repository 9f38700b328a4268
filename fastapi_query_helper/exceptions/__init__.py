"""Exceptions utils package."""

from .json_api import (
    BadRequest,
    HTTPException,
    InvalidFilters,
    InvalidInclude,
    InvalidSort,
)

__all__ = [
    "BadRequest",
    "HTTPException",
    "InvalidFilters",
    "InvalidInclude",
    "InvalidSort",
]
