"""
API and Network Configuration Constants.

Timeouts for calls to the AI provider.
"""

# ============================================================================
# TIMEOUTS (in seconds)
# ============================================================================

DEFAULT_TIMEOUT_HTTPX = 120
"""Timeout of the httpx client behind the OpenAI client (multi-frame requests are slow)."""
