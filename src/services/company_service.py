"""
Loads and merges the company table sources.

Any failing read is logged and surfaced as DataUnavailableError so the
page can render its "data unavailable" state. No automatic retry.
"""

import logging
from typing import Any, Dict, List

from src.common.config import Config
from src.common.error_handling import DataUnavailableError, log_on_exception
from src.common.repositories.base import BackendInterface
from src.table.merger import MergedRow, merge_company_records

logger = logging.getLogger(__name__)


class CompanyTableService:
    """Fetches companies, company_stats and employment_statistics and merges them."""

    def __init__(self, backend: BackendInterface):
        self._backend = backend

    def _fetch(self, table: str) -> List[Dict[str, Any]]:
        try:
            with log_on_exception(logger, f"{table} fetch", level=logging.ERROR):
                return self._backend.query(table)
        except Exception as e:
            raise DataUnavailableError(table) from e

    def load_rows(self) -> List[MergedRow]:
        """
        Raises:
            DataUnavailableError: one of the three sources could not be read
        """
        companies = self._fetch(Config.COMPANIES_TABLE)
        stats = self._fetch(Config.COMPANY_STATS_TABLE)
        employment = self._fetch(Config.EMPLOYMENT_STATS_TABLE)

        rows = merge_company_records(companies, stats, employment)
        logger.debug(f"Merged {len(rows)} companies ({len(stats)} stats, {len(employment)} employment)")
        return rows
