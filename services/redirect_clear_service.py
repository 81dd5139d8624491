"""
Redirect clear service.

Clearing is irreversible. Callers should export the list first.
"""

from typing import Optional
import structlog

from config import settings
from services.redirect_store import RedirectStore, get_redirect_store

logger = structlog.get_logger(__name__)


class RedirectClearService:
    """Empties the stored redirect mapping."""

    def __init__(
        self,
        store: Optional[RedirectStore] = None,
        option_key: Optional[str] = None,
    ):
        self.store = store or get_redirect_store()
        self.option_key = option_key or settings.redirect_option_key

    def clear(self) -> int:
        """
        Replace the stored mapping with an empty one.

        Returns:
            Number of redirects removed

        Raises:
            DatabaseError: If the store cannot be read or written
            ConcurrentModificationError: If another write happened meanwhile
        """
        stored = self.store.get(self.option_key)
        removed = len(stored.mapping)

        self.store.set(self.option_key, {}, stored.version)

        logger.warning("redirects_cleared", key=self.option_key, removed=removed)
        return removed


# Singleton instance
_redirect_clear_service: Optional[RedirectClearService] = None


def get_redirect_clear_service() -> RedirectClearService:
    """Get or create RedirectClearService instance."""
    global _redirect_clear_service
    if _redirect_clear_service is None:
        _redirect_clear_service = RedirectClearService()
    return _redirect_clear_service
