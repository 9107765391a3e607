"""Visitor identity resolution.

A visitor is identified by a fingerprint of header-derived values, never by
the raw values themselves. Feed readers often poll from rotating addresses,
so hits that declare a feed subscription id, or that report an aggregator's
subscriber count, are grouped by agent instead of by address.
"""
import re
from typing import Optional

from hitstats.utils.hashing import fingerprint

FEED_ID_PATTERN = re.compile(r"feed-id[=:]([A-Za-z0-9_]+)", re.IGNORECASE | re.ASCII)
SUBSCRIBER_PATTERN = re.compile(r"(\d+) subscriber", re.IGNORECASE | re.ASCII)

# stats.mult is a 32-bit INTEGER column
MAX_MULTIPLIER = 2**31 - 1


def extract_feed_id(user_agent: str) -> str:
    """Return the token of a ``feed-id=<token>`` / ``feed-id:<token>`` marker, or ""."""
    match = FEED_ID_PATTERN.search(user_agent)
    return match.group(1) if match else ""


def parse_subscriber_count(user_agent: str) -> Optional[int]:
    """Return N from a ``<N> subscriber`` phrase, or None if absent or out of range."""
    match = SUBSCRIBER_PATTERN.search(user_agent)
    if match is None:
        return None
    count = int(match.group(1))
    if count > MAX_MULTIPLIER:
        return None
    return count


def is_subscriber_count(user_agent: str) -> bool:
    """Whether the hit's multiplier is a self-reported subscriber count."""
    return parse_subscriber_count(user_agent) is not None


def resolve_uniq(ip: str, user_agent: str, agent: str) -> str:
    """
    Resolve the visitor fingerprint of a hit.

    Precedence:
        1. agent + declared feed id, when the user agent carries one
        2. agent alone, when the user agent mentions "subscriber"
        3. raw ip + user agent

    Tiers 1 and 2 apply only when both user agent and agent are non-empty.

    Args:
        ip: Client address as received
        user_agent: Raw User-Agent header
        agent: Canonical agent name

    Returns:
        UUID-shaped fingerprint string
    """
    if user_agent and agent:
        feed_id = extract_feed_id(user_agent)
        if feed_id:
            return fingerprint(f"{agent}/{feed_id}")
        if "subscriber" in user_agent.lower():
            return fingerprint(agent)
    return fingerprint(ip + user_agent)
