"""
Redirect export service - download the redirect list as CSV.

The export uses the same two-column format the importer reads, so an
exported file can be uploaded again as-is.
"""

import io
from io import BytesIO
from typing import Optional
import structlog

from config import settings
from models.redirect import RedirectMapping
from parsers.redirect_csv_parser import write_redirects_csv
from services.redirect_store import RedirectStore, get_redirect_store

logger = structlog.get_logger(__name__)

EXAMPLE_FILENAME = "301-example.csv"

# Served as a template for first-time uploads
EXAMPLE_REDIRECTS: RedirectMapping = {
    "/old-page/": "/new-page/",
    "/2013/05/summer-sale/": "https://www.example.com/offers/summer/",
}


def export_redirects_csv(mapping: RedirectMapping) -> bytes:
    """
    Serialize a mapping to CSV bytes (UTF-8, one row per redirect, no header).

    Rows follow the mapping's iteration order.
    """
    buffer = io.StringIO(newline="")
    write_redirects_csv(mapping.items(), buffer)
    return buffer.getvalue().encode("utf-8")


def example_csv() -> bytes:
    """Example upload file."""
    return export_redirects_csv(EXAMPLE_REDIRECTS)


class RedirectExportService:
    """Read side of the redirect list: listing and CSV export."""

    def __init__(
        self,
        store: Optional[RedirectStore] = None,
        option_key: Optional[str] = None,
    ):
        self.store = store or get_redirect_store()
        self.option_key = option_key or settings.redirect_option_key

    def get_all(self) -> RedirectMapping:
        """Current mapping."""
        return self.store.get(self.option_key).mapping

    def export(self) -> BytesIO:
        """
        Export the stored redirects.

        Returns:
            BytesIO positioned at the start of the CSV content

        Raises:
            DatabaseError: If the store cannot be read
        """
        mapping = self.get_all()
        content = export_redirects_csv(mapping)

        logger.info("redirects_exported", count=len(mapping), bytes=len(content))
        return BytesIO(content)


# Singleton instance
_redirect_export_service: Optional[RedirectExportService] = None


def get_redirect_export_service() -> RedirectExportService:
    """Get or create RedirectExportService instance."""
    global _redirect_export_service
    if _redirect_export_service is None:
        _redirect_export_service = RedirectExportService()
    return _redirect_export_service
