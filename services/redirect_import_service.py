"""
Redirect import service - bulk CSV upload of redirect rules.

Flow:
    1. validate_upload() checks the file itself (transport status, size,
       extension, declared content type). Any failure rejects the whole
       file and nothing is parsed.
    2. The file is parsed into (source, destination) rows.
    3. merge_rows() folds every row into the current mapping:
         - new source with a destination      -> added
         - empty destination (new or existing) -> skipped, missing destination
         - source already present              -> skipped, duplicate
       Existing redirects are never overwritten.
    4. The updated mapping is written back in one call.

Rows never abort an import; every row gets a line in the report.
"""

from typing import Iterable, Optional
import structlog

from config import settings
from exceptions import FileRejectedError
from models.redirect import (
    RedirectMapping,
    UploadedFile,
    ImportOutcome,
    ImportReport,
    RejectionReason,
)
from parsers.redirect_csv_parser import (
    MalformedRecord,
    ParsedRecord,
    decode_upload,
    iter_redirect_records,
)
from services.redirect_store import RedirectStore, get_redirect_store

logger = structlog.get_logger(__name__)

ALLOWED_EXTENSIONS = frozenset({"csv"})

# Content types browsers and spreadsheet apps send for .csv files
ALLOWED_MIME_TYPES = (
    "application/csv",
    "application/excel",
    "application/vnd.ms-excel",
    "application/vnd.msexcel",
    "application/octet-stream",
    "application/data",
    "application/x-csv",
    "application/txt",
    "text/anytext",
    "text/csv",
    "text/x-csv",
    "text/plain",
    "text/comma-separated-values",
)


def _base_mime_type(content_type: str) -> str:
    """'Text/CSV; charset=utf-8' -> 'text/csv'"""
    return (content_type or "").split(";", 1)[0].strip().lower()


def validate_upload(upload: UploadedFile, max_upload_bytes: Optional[int] = None) -> None:
    """
    Check an upload before any of it is parsed.

    A non-zero transport code short-circuits the other checks, since the
    remaining attributes of a failed upload are not reliable. Otherwise
    size, extension and content type are each checked and every failure
    is reported.

    Raises:
        FileRejectedError: reasons holds RejectionReason values,
            details["messages"] one human-readable line per reason
    """
    limit = max_upload_bytes or settings.max_upload_bytes
    file_info = {
        "name": upload.name,
        "type": upload.content_type,
        "size": upload.size,
        "error": upload.error,
    }

    if upload.error:
        raise FileRejectedError(
            [RejectionReason.TRANSPORT_CODE.value],
            details={"messages": [f"Return Code: {upload.error}"], "file": file_info},
        )

    reasons: list[str] = []
    messages: list[str] = []

    if upload.size >= limit:
        reasons.append(RejectionReason.SIZE.value)
        messages.append(
            f"Invalid file: {upload.name} is {upload.size} bytes, uploads must be smaller than {limit} bytes."
        )

    if upload.extension.lower() not in ALLOWED_EXTENSIONS:
        reasons.append(RejectionReason.EXTENSION.value)
        messages.append(
            f"Invalid file: {upload.name} does not have a .csv extension."
        )

    if _base_mime_type(upload.content_type) not in ALLOWED_MIME_TYPES:
        reasons.append(RejectionReason.MIME_TYPE.value)
        messages.append(
            f"Invalid file: content type '{upload.content_type}' is not an approved CSV type."
        )

    if reasons:
        raise FileRejectedError(reasons, details={"messages": messages, "file": file_info})


def merge_rows(
    mapping: RedirectMapping,
    records: Iterable[ParsedRecord],
    report: ImportReport,
) -> RedirectMapping:
    """
    Fold parsed rows into mapping (in place) and record each outcome.

    Rows see the effect of earlier rows, so a source repeated within one
    file is a duplicate the second time.
    """
    for record in records:
        if isinstance(record, MalformedRecord):
            if record.too_long:
                report.add(
                    ImportOutcome.SKIPPED_TOO_LONG,
                    f"Line {record.line} is {record.error} and was not imported.",
                    line=record.line,
                )
                continue
            report.add(
                ImportOutcome.SKIPPED_MALFORMED,
                f"Line {record.line} could not be read as CSV ({record.error}). "
                "If the file was saved on a Mac, enable line ending detection.",
                line=record.line,
            )
            continue

        source, destination = record.source, record.destination

        if source not in mapping and destination != "":
            mapping[source] = destination
            report.add(
                ImportOutcome.ADDED,
                f"{source} was added to redirect to {destination}",
                line=record.line,
                source=source,
                destination=destination,
            )
        elif destination == "":
            report.add(
                ImportOutcome.SKIPPED_MISSING_DESTINATION,
                f"{source} is missing a corresponding URL to redirect to.",
                line=record.line,
                source=source,
            )
        else:
            report.add(
                ImportOutcome.SKIPPED_DUPLICATE,
                f"{source} already exists and was not added.",
                line=record.line,
                source=source,
                destination=destination,
            )

    return mapping


def import_redirects(
    upload: UploadedFile,
    auto_detect_line_endings: bool,
    current_mapping: RedirectMapping,
    max_upload_bytes: Optional[int] = None,
    max_record_length: Optional[int] = None,
) -> tuple[RedirectMapping, ImportReport]:
    """
    Import an uploaded CSV into a copy of current_mapping.

    Never raises for bad files or bad rows; those end up in the report.
    current_mapping itself is not modified.

    Args:
        upload: Uploaded file
        auto_detect_line_endings: Accept bare CR line endings for this call
        current_mapping: Mapping to merge into
        max_upload_bytes: Size limit (defaults to settings)
        max_record_length: Characters read per line (defaults to settings)

    Returns:
        (updated mapping, report). On rejection the mapping equals
        current_mapping and report.rejected is True.
    """
    limit = max_upload_bytes or settings.max_upload_bytes
    record_length = max_record_length or settings.max_record_length
    report = ImportReport(file_name=upload.name, file_size=max(upload.size, 0))

    try:
        validate_upload(upload, limit)
        # Declared size can lie; never hold more than the limit in memory
        raw = upload.stream.read(limit)
        if len(raw) >= limit:
            raise FileRejectedError(
                [RejectionReason.SIZE.value],
                details={"messages": [
                    f"Invalid file: {upload.name} is larger than {limit} bytes."
                ]},
            )
    except FileRejectedError as e:
        logger.warning(
            "upload_rejected",
            file_name=upload.name,
            content_type=upload.content_type,
            size=upload.size,
            reasons=e.reasons,
        )
        report.rejected = True
        report.rejection_reasons = [RejectionReason(r) for r in e.reasons]
        for message in e.details.get("messages", []):
            report.add(ImportOutcome.FILE_REJECTED, message)
        if RejectionReason.MIME_TYPE in report.rejection_reasons:
            report.allowed_mime_types = list(ALLOWED_MIME_TYPES)
        return dict(current_mapping), report

    records = iter_redirect_records(
        decode_upload(raw),
        detect_line_endings=auto_detect_line_endings,
        max_record_length=record_length,
    )
    updated = merge_rows(dict(current_mapping), records, report)
    return updated, report


class RedirectImportService:
    """
    Store-bound import.

    Reads the mapping, runs import_redirects(), writes the result back.
    """

    def __init__(
        self,
        store: Optional[RedirectStore] = None,
        option_key: Optional[str] = None,
    ):
        self.store = store or get_redirect_store()
        self.option_key = option_key or settings.redirect_option_key

    def import_file(
        self,
        upload: UploadedFile,
        auto_detect_line_endings: bool = False,
    ) -> ImportReport:
        """
        Import an uploaded CSV and persist the merged mapping.

        The mapping is written only when at least one redirect was added.

        Raises:
            DatabaseError: If the store cannot be read or written
            ConcurrentModificationError: If another write happened meanwhile
        """
        logger.info(
            "redirect_import_started",
            file_name=upload.name,
            size=upload.size,
            auto_detect_line_endings=auto_detect_line_endings,
        )

        stored = self.store.get(self.option_key)
        updated, report = import_redirects(
            upload,
            auto_detect_line_endings,
            stored.mapping,
        )

        if report.rejected:
            return report

        if report.added:
            self.store.set(self.option_key, updated, stored.version)

        logger.info(
            "redirect_import_complete",
            file_name=upload.name,
            rows=report.total_rows,
            added=report.added,
            skipped=report.skipped,
            total_redirects=len(updated),
        )
        return report


# Singleton instance
_redirect_import_service: Optional[RedirectImportService] = None


def get_redirect_import_service() -> RedirectImportService:
    """Get or create RedirectImportService instance."""
    global _redirect_import_service
    if _redirect_import_service is None:
        _redirect_import_service = RedirectImportService()
    return _redirect_import_service
