"""
Business logic services.

Each service handles one domain area.
"""

from services.redirect_store import RedirectStore, StoredMapping, get_redirect_store
from services.redirect_import_service import (
    RedirectImportService,
    get_redirect_import_service,
    import_redirects,
    merge_rows,
    validate_upload,
)
from services.redirect_export_service import (
    RedirectExportService,
    get_redirect_export_service,
    export_redirects_csv,
)
from services.redirect_clear_service import RedirectClearService, get_redirect_clear_service

__all__ = [
    "RedirectStore",
    "StoredMapping",
    "get_redirect_store",
    "RedirectImportService",
    "get_redirect_import_service",
    "import_redirects",
    "merge_rows",
    "validate_upload",
    "RedirectExportService",
    "get_redirect_export_service",
    "export_redirects_csv",
    "RedirectClearService",
    "get_redirect_clear_service",
]
