"""
Redirect import/export schemas.

A redirect mapping is a plain dict of source path -> destination path,
stored as one JSON record. Import results are reported line by line so
the admin screen can show exactly what happened to every row.
"""

from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Optional

from pydantic import BaseModel, Field, computed_field

from models.base import BaseSchema


RedirectMapping = dict[str, str]


class ImportOutcome(str, Enum):
    """What happened to one row (or to the whole file)."""
    ADDED = "added"
    SKIPPED_DUPLICATE = "skipped_duplicate"
    SKIPPED_MISSING_DESTINATION = "skipped_missing_destination"
    SKIPPED_MALFORMED = "skipped_malformed"
    SKIPPED_TOO_LONG = "skipped_too_long"
    FILE_REJECTED = "file_rejected"


class RejectionReason(str, Enum):
    """Why an upload was refused before parsing."""
    SIZE = "size"
    EXTENSION = "extension"
    MIME_TYPE = "mime_type"
    TRANSPORT_CODE = "transport_code"


@dataclass
class UploadedFile:
    """
    Uploaded file as handed over by the web layer.

    error is the transport status reported for the upload; 0 means the
    bytes arrived intact.
    """
    name: str
    content_type: str
    size: int
    stream: BinaryIO
    error: int = 0

    @property
    def extension(self) -> str:
        """Text after the last dot of the file name, or '' when there is none."""
        if "." not in self.name:
            return ""
        return self.name.rsplit(".", 1)[1]


# ===================
# IMPORT REPORT
# ===================

class ImportReportLine(BaseModel):
    """One human-readable entry of an import report."""

    outcome: ImportOutcome
    message: str
    line: Optional[int] = Field(None, ge=1, description="CSV record number")
    source: Optional[str] = None
    destination: Optional[str] = None


class ImportReport(BaseModel):
    """
    Result of one import call.

    Built while the file is processed and returned to the caller for
    display. Never persisted.
    """

    file_name: str
    file_size: int = Field(ge=0)
    rejected: bool = False
    rejection_reasons: list[RejectionReason] = Field(default_factory=list)
    allowed_mime_types: list[str] = Field(
        default_factory=list,
        description="Accepted content types, listed only when the type was refused"
    )
    lines: list[ImportReportLine] = Field(default_factory=list)

    @computed_field
    @property
    def size_kb(self) -> float:
        return round(self.file_size / 1024, 2)

    @computed_field
    @property
    def added(self) -> int:
        return self._count(ImportOutcome.ADDED)

    @computed_field
    @property
    def skipped(self) -> int:
        return sum(
            1 for line in self.lines
            if line.outcome not in (ImportOutcome.ADDED, ImportOutcome.FILE_REJECTED)
        )

    @computed_field
    @property
    def total_rows(self) -> int:
        return sum(1 for line in self.lines if line.line is not None)

    def _count(self, outcome: ImportOutcome) -> int:
        return sum(1 for line in self.lines if line.outcome == outcome)

    def add(
        self,
        outcome: ImportOutcome,
        message: str,
        line: Optional[int] = None,
        source: Optional[str] = None,
        destination: Optional[str] = None,
    ) -> None:
        """Append a report line."""
        self.lines.append(
            ImportReportLine(
                outcome=outcome,
                message=message,
                line=line,
                source=source,
                destination=destination,
            )
        )

    def outcomes(self) -> list[ImportOutcome]:
        """Outcome of every line, in order."""
        return [line.outcome for line in self.lines]

    def to_text(self) -> str:
        """
        Render the report as plain text, one entry per line.

        Accepted files start with an upload summary; rejected files list
        the accepted content types when the type was the problem.
        """
        out: list[str] = []
        if not self.rejected:
            out.append(f"Upload: {self.file_name}")
            out.append(f"Size: {self.size_kb} kB")
            out.append("")
        out.extend(line.message for line in self.lines)
        if self.allowed_mime_types:
            out.append("")
            out.append("Approved Mime Types:")
            out.extend(self.allowed_mime_types)
        return "\n".join(out)


# ===================
# RESPONSES
# ===================

class RedirectListResponse(BaseModel):
    """Current redirect mapping."""

    data: RedirectMapping
    total: int


class ClearResponse(BaseSchema):
    """Result of clearing the redirect list."""

    cleared: int = Field(ge=0, description="Number of redirects removed")
    message: str
