"""Hashing utilities for visitor fingerprints and API tokens."""
import hashlib
import secrets
import uuid
from hitstats.config import settings


def fingerprint(value: str) -> str:
    """
    Hash a string into a 128-bit UUID-shaped fingerprint.

    The SHA-256 digest is truncated to its first 16 bytes and rendered as
    lowercase hyphenated hex (8-4-4-4-12). The same input always yields the
    same fingerprint and the input cannot be recovered from it.

    Args:
        value: The string to fingerprint

    Returns:
        Fingerprint string, e.g. "9f86d081-884c-7d65-9a2f-eaa0c55ad015"
    """
    digest = hashlib.sha256(value.encode("utf-8")).digest()
    return str(uuid.UUID(bytes=digest[:16]))


def hash_api_key(api_key: str) -> str:
    """
    Hash an API key using SHA-256 with salt.

    Args:
        api_key: The API key to hash

    Returns:
        Hex digest of the hashed key
    """
    salted_key = f"{api_key}{settings.api_key_salt}"
    return hashlib.sha256(salted_key.encode()).hexdigest()


def verify_api_key_hash(api_key: str, stored_hash: str) -> bool:
    """
    Verify an API key against a stored hash in constant time.

    Args:
        api_key: The API key to verify
        stored_hash: The stored hash to compare against

    Returns:
        True if the key matches, False otherwise
    """
    computed_hash = hash_api_key(api_key)
    return secrets.compare_digest(computed_hash, stored_hash)
