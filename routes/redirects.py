"""
Redirect admin API routes.

Bulk import from CSV, export to CSV, and clearing of the redirect list.
Authentication is handled in front of this service.
"""

import os

from fastapi import APIRouter, UploadFile, File, Form
from fastapi.responses import JSONResponse, Response, StreamingResponse
import structlog

from config import settings
from exceptions import AppError
from models.redirect import (
    UploadedFile,
    ImportReport,
    RedirectListResponse,
    ClearResponse,
)
from services.redirect_import_service import get_redirect_import_service
from services.redirect_export_service import (
    get_redirect_export_service,
    example_csv,
    EXAMPLE_FILENAME,
)
from services.redirect_clear_service import get_redirect_clear_service

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/redirects", tags=["Redirects"])


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


def _to_uploaded_file(file: UploadFile) -> UploadedFile:
    """
    Describe a multipart upload.

    Starlette has already rejected broken multipart bodies, so the
    transport code of anything that reaches here is 0.
    """
    size = file.size
    if size is None:
        file.file.seek(0, os.SEEK_END)
        size = file.file.tell()
        file.file.seek(0)

    return UploadedFile(
        name=file.filename or "",
        content_type=file.content_type or "",
        size=size,
        stream=file.file,
        error=0,
    )


def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


# ===================
# ROUTES
# ===================

@router.get("", response_model=RedirectListResponse)
async def list_redirects():
    """
    List the current redirects.
    """
    try:
        mapping = get_redirect_export_service().get_all()
        return RedirectListResponse(data=mapping, total=len(mapping))

    except Exception as e:
        return handle_error(e)


@router.post("/import", response_model=ImportReport)
async def import_redirects(
    file: UploadFile = File(..., description="CSV file with source,destination rows"),
    auto_detect_line_endings: bool = Form(
        False,
        description="Treat bare CR as a line ending (CSV saved by Excel on a Mac)"
    ),
):
    """
    Upload redirects from a CSV file.

    Rows whose source already exists or that have no destination are
    skipped; existing redirects are never overwritten. A refused file is
    still a 200: the report says why it was refused.
    """
    try:
        service = get_redirect_import_service()
        report = service.import_file(
            _to_uploaded_file(file),
            auto_detect_line_endings=auto_detect_line_endings,
        )
        return report

    except Exception as e:
        return handle_error(e)


@router.get("/export")
async def export_redirects():
    """
    Download all redirects as CSV (source,destination; no header).
    """
    try:
        buffer = get_redirect_export_service().export()
        return StreamingResponse(
            buffer,
            media_type=settings.export_media_type,
            headers=_attachment(settings.export_filename),
        )

    except Exception as e:
        return handle_error(e)


@router.get("/example")
async def download_example():
    """
    Download an example upload file.
    """
    return Response(
        content=example_csv(),
        media_type="text/csv",
        headers=_attachment(EXAMPLE_FILENAME),
    )


@router.post("/clear", response_model=ClearResponse)
async def clear_redirects():
    """
    Remove every redirect.

    This cannot be undone. Export the list first if you may need it.
    """
    try:
        removed = get_redirect_clear_service().clear()
        return ClearResponse(
            cleared=removed,
            message=(
                f"Removed {removed} redirects. This cannot be undone; "
                "restore from an exported CSV if needed."
            ),
        )

    except Exception as e:
        return handle_error(e)
