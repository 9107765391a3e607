"""API key authentication utilities."""
from typing import Optional
from fastapi import Header

from hitstats.config import settings
from hitstats.utils.hashing import hash_api_key, verify_api_key_hash
from hitstats.utils.exceptions import authentication_error


def verify_api_key(
    api_key: Optional[str] = Header(None, alias="X-API-Key", description="Shared API token"),
) -> None:
    """
    Check the X-API-Key header against the configured API token.

    Authentication is disabled when no API token is configured.

    Raises:
        HTTPException: If the key is missing or does not match
    """
    if not settings.api_token:
        return

    if not api_key:
        raise authentication_error("API key is required")

    if not verify_api_key_hash(api_key, hash_api_key(settings.api_token)):
        raise authentication_error("Invalid API key")
