"""
Generation service client abstraction and implementation.

Components:
- BaseGenerationClient: Abstract base class for generation service clients
- HttpGenerationClient: httpx implementation for the HTTP(S) service
"""

from tryon_assets.client.base_client import BaseGenerationClient
from tryon_assets.client.http_client import SUBMIT_ENDPOINTS, HttpGenerationClient

__all__ = [
    "BaseGenerationClient",
    "HttpGenerationClient",
    "SUBMIT_ENDPOINTS",
]
