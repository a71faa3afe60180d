"""
Integration tests for the Try-On Asset Layer.

Test components together or against real external services:
- Full pipeline (submit → poll → mirror fallback → placeholder) over httpx.MockTransport
- Generation service client (real calls, marked with @pytest.mark.integration)
"""
