"""Clients for the external collaborators: the data provider and the completion model."""

from earnings_mcp.services.api_client import EarningsApiClient
from earnings_mcp.services.inference import InferenceClient

__all__ = ["EarningsApiClient", "InferenceClient"]
