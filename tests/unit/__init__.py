"""
Unit tests for the Try-On Asset Layer.

Test individual components in isolation:
- Data models and error taxonomy
- Retry policy (bounds, backoff, classification, telemetry)
- HTTP client (status mapping, multipart submission)
- Orchestrator (polling, terminal transitions, discard, timeouts)
- Asset loader (candidate order, fallback, cache, validation)
"""
