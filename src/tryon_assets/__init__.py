"""
Resilient asset layer for the AI try-on studio.

Submits body and clothing generation jobs to the remote generation service,
polls them to completion and loads the resulting 3D assets with retries,
mirror fallback and a procedural placeholder of last resort.

Architecture: httpx client + asyncio poll loops + retry policy + structlog/Prometheus telemetry
"""

__version__ = "0.1.0"
