"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.redirect import (
    RedirectMapping,
    ImportOutcome,
    RejectionReason,
    UploadedFile,
    ImportReportLine,
    ImportReport,
    RedirectListResponse,
    ClearResponse,
)

__all__ = [
    "BaseSchema",
    "RedirectMapping",
    "ImportOutcome",
    "RejectionReason",
    "UploadedFile",
    "ImportReportLine",
    "ImportReport",
    "RedirectListResponse",
    "ClearResponse",
]
