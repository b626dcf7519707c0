"""HTTP client for the vendor Data API."""

from .client import DataApiClient

__all__ = ["DataApiClient"]
