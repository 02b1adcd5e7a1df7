"""Agent Analytics: scheduled AI digests of Dune metrics posted to Slack."""

__version__ = "0.1.0"
