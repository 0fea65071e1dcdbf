"""
Company bookmarks per student.

Bookmarks are (user_id, company_id) rows; toggling inserts or deletes.
Backend failures are logged and leave the bookmark state unchanged.
"""

import logging
from typing import Any, Set

from src.common.actors import Actor
from src.common.config import Config
from src.common.error_handling import contained_operation
from src.common.repositories.base import BackendInterface

logger = logging.getLogger(__name__)


class BookmarkService:
    """Read and toggle a student's bookmarked companies."""

    def __init__(self, backend: BackendInterface):
        self._backend = backend

    @contained_operation("bookmark fetch", fallback_value=set())
    def list_for(self, actor: Actor) -> Set[Any]:
        rows = self._backend.query(Config.BOOKMARKS_TABLE, {"user_id": actor.id})
        return {row["company_id"] for row in rows if "company_id" in row}

    def toggle(self, actor: Actor, company_id: Any, bookmarks: Set[Any]) -> Set[Any]:
        """
        Flip the bookmark for company_id.

        Args:
            actor: Student toggling the bookmark
            company_id: Company to (un)bookmark
            bookmarks: Current bookmark set

        Returns:
            The new bookmark set, or an unchanged copy if the write failed
        """
        updated = set(bookmarks)
        selector = {"user_id": actor.id, "company_id": company_id}
        try:
            if company_id in bookmarks:
                self._backend.delete(Config.BOOKMARKS_TABLE, selector)
                updated.discard(company_id)
            else:
                self._backend.insert(Config.BOOKMARKS_TABLE, selector)
                updated.add(company_id)
        except Exception as e:
            logger.warning(f"[bookmark toggle] Failed for {actor.short_id}/{company_id}: {e}")
            return set(bookmarks)
        return updated
