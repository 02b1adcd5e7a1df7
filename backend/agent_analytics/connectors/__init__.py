"""Data source connectors package."""
from agent_analytics.connectors.base import DataSource
from agent_analytics.connectors.dune_connector import DuneConnector

__all__ = ["DataSource", "DuneConnector"]
