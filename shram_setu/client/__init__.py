"""Async API client with transparent access-token refresh."""

from shram_setu.client.api_client import ShramSetuClient
from shram_setu.client.coordinator import RequestCoordinator
from shram_setu.client.session import SessionState

__all__ = ["RequestCoordinator", "SessionState", "ShramSetuClient"]
