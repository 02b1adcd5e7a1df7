"""
Base data source interface.
Every analytics data source the digest can pull from inherits from this class.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class DataSource(ABC):
    """Abstract base class for metric data sources."""

    source_type: str = "unknown"

    @abstractmethod
    async def fetch_latest(self, query_id: int, limit: int) -> Optional[str]:
        """
        Return the latest `limit` rows of a predefined query as text.
        Returns None (or an empty string) when nothing could be fetched.
        """
        ...
