"""Dune Analytics data source: pulls the latest saved result of a query."""
from __future__ import annotations

import logging
from typing import Any, List, Optional

import httpx
import pandas as pd

from agent_analytics.connectors.base import DataSource
from agent_analytics.settings import Settings

logger = logging.getLogger(__name__)


class DuneConnector(DataSource):
    source_type = "dune"

    def __init__(self, api_key: str, base_url: str, timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.data_path = "result.rows"
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "DuneConnector":
        return cls(settings.dune_api_key, settings.dune_api_base, timeout=settings.http_timeout)

    async def _request(self, url: str) -> Any:
        headers = {"X-Dune-API-Key": self.api_key}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.get(url, headers=headers)
            resp.raise_for_status()
            return resp.json()

    def _extract_rows(self, data: Any) -> Optional[List[Any]]:
        """Navigate into the response using the dot-separated data_path."""
        for key in self.data_path.split("."):
            if not isinstance(data, dict):
                return None
            data = data.get(key)
        return data if isinstance(data, list) else None

    async def extract_data(self, query_id: int, *, limit: Optional[int] = None) -> Optional[pd.DataFrame]:
        """Latest result rows of a query as a DataFrame, newest `limit` rows only."""
        data = await self._request(f"{self.base_url}/query/{query_id}/results")
        rows = self._extract_rows(data)
        if rows is None:
            state = data.get("state") if isinstance(data, dict) else None
            logger.warning(f"Dune query {query_id} returned no result rows (state={state})")
            return None
        df = pd.json_normalize(rows) if rows else pd.DataFrame()
        if limit:
            df = df.tail(limit)
        return df

    async def fetch_latest(self, query_id: int, limit: int) -> Optional[str]:
        try:
            df = await self.extract_data(query_id, limit=limit)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching latest result for Dune query {query_id}: {type(e).__name__}: {e}")
            return None
        if df is None or df.empty:
            return None
        logger.debug(f"Fetched {len(df)} rows for Dune query {query_id}")
        return df.to_csv(index=False)
