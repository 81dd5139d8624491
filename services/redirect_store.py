"""
Redirect store - persistence for the redirect mapping.

The whole mapping lives in one row of the options table:

    key      text  unique      e.g. "redirects"
    value    jsonb             {"/old": "/new", ...}
    version  int   default 0   bumped on every write (NULL on older rows)

Reads and writes are wholesale. Writes are guarded by the version read
earlier, so two admins importing at once cannot silently overwrite each
other: the second write fails with ConcurrentModificationError.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Optional
import structlog

from config import get_supabase_client, OPTIONS_TABLE
from exceptions import DatabaseError, ConcurrentModificationError
from models.redirect import RedirectMapping

logger = structlog.get_logger(__name__)

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"


@dataclass
class StoredMapping:
    """Mapping as read from the store, with the version to write against."""
    mapping: RedirectMapping = field(default_factory=dict)
    version: Optional[int] = None  # None: no record yet

    @property
    def exists(self) -> bool:
        return self.version is not None


def _coerce_mapping(key: str, value: Any) -> RedirectMapping:
    """Turn a stored value into a mapping; anything that is not an object is empty."""
    if isinstance(value, str):
        if not value.strip():
            return {}
        try:
            value = json.loads(value)
        except ValueError:
            logger.warning("redirect_value_not_json", key=key)
            return {}
    if not isinstance(value, dict):
        if value:
            logger.warning("redirect_value_not_mapping", key=key, type=type(value).__name__)
        return {}
    return {str(k): str(v) for k, v in value.items()}


class RedirectStore:
    """
    Key-value access to the options table.

    get() never fails on a missing record; set() either writes the whole
    mapping or raises.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = OPTIONS_TABLE

    def get(self, key: str) -> StoredMapping:
        """
        Read the mapping stored under key.

        Returns:
            StoredMapping (empty with version None when no record exists)

        Raises:
            DatabaseError: If the query fails
        """
        logger.debug("getting_redirects", key=key)

        try:
            response = (
                self.db.table(self.table)
                .select("key, value, version")
                .eq("key", key)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("redirects_get_failed", key=key, error=str(e))
            raise DatabaseError("select", str(e))

        if not response.data:
            return StoredMapping()

        row = response.data[0]
        stored = StoredMapping(
            mapping=_coerce_mapping(key, row.get("value")),
            version=int(row.get("version") or 0),
        )
        logger.debug("redirects_retrieved", key=key, count=len(stored.mapping), version=stored.version)
        return stored

    def set(
        self,
        key: str,
        mapping: RedirectMapping,
        expected_version: Optional[int],
    ) -> int:
        """
        Replace the mapping stored under key.

        Args:
            key: Option key
            mapping: Complete new mapping
            expected_version: Version returned by get(); None if there was no record

        Returns:
            New version number

        Raises:
            ConcurrentModificationError: Record changed (or appeared) since it was read
            DatabaseError: If the write fails
        """
        logger.info("saving_redirects", key=key, count=len(mapping), expected_version=expected_version)

        if expected_version is None:
            return self._insert(key, mapping)

        try:
            query = (
                self.db.table(self.table)
                .update({"value": dict(mapping), "version": expected_version + 1})
                .eq("key", key)
            )
            if expected_version == 0:
                # Rows written before versioning have a NULL version, read as 0
                query = query.or_("version.eq.0,version.is.null")
            else:
                query = query.eq("version", expected_version)
            response = query.execute()
        except Exception as e:
            logger.error("redirects_update_failed", key=key, error=str(e))
            raise DatabaseError("update", str(e))

        if not response.data:
            logger.warning("redirects_version_conflict", key=key, expected_version=expected_version)
            raise ConcurrentModificationError(key, expected_version)

        logger.info("redirects_saved", key=key, version=expected_version + 1)
        return expected_version + 1

    def _insert(self, key: str, mapping: RedirectMapping) -> int:
        try:
            self.db.table(self.table).insert(
                {"key": key, "value": dict(mapping), "version": 1}
            ).execute()
        except Exception as e:
            if getattr(e, "code", None) == UNIQUE_VIOLATION:
                logger.warning("redirects_version_conflict", key=key, expected_version=None)
                raise ConcurrentModificationError(key, None) from e
            logger.error("redirects_insert_failed", key=key, error=str(e))
            raise DatabaseError("insert", str(e))

        logger.info("redirects_saved", key=key, version=1)
        return 1


# Singleton instance
_redirect_store: Optional[RedirectStore] = None


def get_redirect_store() -> RedirectStore:
    """Get or create RedirectStore instance."""
    global _redirect_store
    if _redirect_store is None:
        _redirect_store = RedirectStore()
    return _redirect_store
