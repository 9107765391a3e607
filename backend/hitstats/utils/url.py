"""URL utility functions."""
from urllib.parse import urlsplit


def referrer_domain(referrer: str) -> str:
    """
    Extract the normalized host from a referrer URL.

    Userinfo is dropped, the host is lowercased and a leading "www." is
    removed. The port, if any, is kept.

    Args:
        referrer: Raw Referer header value

    Returns:
        Referrer domain, or "" for empty, relative or unparsable referrers
    """
    if not referrer:
        return ""
    try:
        netloc = urlsplit(referrer).netloc
    except ValueError:
        return ""
    host = netloc.rpartition("@")[2].lower()
    return host.removeprefix("www.")
