"""
API key resolution utilities.

Resolves the bearer credential from:
1. Explicit value
2. CALLAI_API_KEY
3. OPENROUTER_API_KEY
"""

from __future__ import annotations

import os

API_KEY_ENV_VARS = ("CALLAI_API_KEY", "OPENROUTER_API_KEY")


def resolve_api_key(explicit_key: str | None = None) -> str | None:
    """Resolve the API key.

    Args:
        explicit_key: Explicitly provided API key

    Returns:
        Resolved API key or None if not found
    """
    if explicit_key:
        return explicit_key

    for env_var in API_KEY_ENV_VARS:
        key = os.getenv(env_var)
        if key:
            return key

    return None


def get_auth_header(api_key: str | None) -> dict[str, str]:
    """Build the authorization header for a key.

    Args:
        api_key: Bearer credential, if any

    Returns:
        Header dict, empty when there is no key
    """
    if not api_key:
        return {}
    return {"Authorization": f"Bearer {api_key}"}
