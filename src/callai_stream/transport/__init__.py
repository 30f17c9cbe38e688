"""
Transport layer - HTTP client for API communication.

Provides httpx-based transport with:
- Streaming responses handed back unread
- Timeout management
- API key resolution
"""

from callai_stream.transport.auth import get_auth_header, resolve_api_key
from callai_stream.transport.http import HttpTransport

__all__ = [
    "HttpTransport",
    "get_auth_header",
    "resolve_api_key",
]
