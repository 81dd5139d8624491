"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    ValidationError,
    ConflictError,
    DatabaseError,

    # Uploads
    FileRejectedError,

    # Store
    ConcurrentModificationError,
)

__all__ = [
    # Base
    "AppError",
    "ValidationError",
    "ConflictError",
    "DatabaseError",

    # Uploads
    "FileRejectedError",

    # Store
    "ConcurrentModificationError",
]
