"""Tests for visitor fingerprints."""
import re

from hitstats.services.identity import (
    extract_feed_id,
    is_subscriber_count,
    parse_subscriber_count,
    resolve_uniq,
)
from hitstats.utils.hashing import fingerprint

UUID_SHAPE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


def test_fingerprint_is_truncated_sha256():
    assert fingerprint("") == "e3b0c442-98fc-1c14-9afb-f4c8996fb924"
    assert fingerprint("abc") == "ba7816bf-8f01-cfea-4141-40de5dae2223"


def test_fingerprint_shape_and_determinism():
    first = resolve_uniq("203.0.113.7", "Mozilla/5.0 (X11; Linux x86_64)", "Firefox")
    second = resolve_uniq("203.0.113.7", "Mozilla/5.0 (X11; Linux x86_64)", "Firefox")
    assert UUID_SHAPE.match(first)
    assert first == second


def test_default_identity_is_ip_and_user_agent():
    ua = "Mozilla/5.0 (X11; Linux x86_64; rv:109.0) Gecko/20100101 Firefox/115.0"
    assert resolve_uniq("203.0.113.7", ua, "Firefox") == fingerprint("203.0.113.7" + ua)
    assert resolve_uniq("203.0.113.8", ua, "Firefox") != resolve_uniq("203.0.113.7", ua, "Firefox")


def test_feed_id_groups_across_addresses():
    ua = "FeedReader/1.0 feed-id:42"
    first = resolve_uniq("198.51.100.1", ua, "FeedReader")
    second = resolve_uniq("198.51.100.99", ua, "FeedReader")
    assert first == second == fingerprint("FeedReader/42")


def test_feed_id_with_equals_marker():
    ua = "Reader/2.0 (feed-id=abc_123)"
    assert resolve_uniq("198.51.100.1", ua, "Reader") == fingerprint("Reader/abc_123")


def test_feed_id_takes_precedence_over_subscribers():
    ua = "Feedbin feed-id:1373711 - 192 subscribers"
    assert resolve_uniq("1.2.3.4", ua, "Feedbin") == fingerprint("Feedbin/1373711")


def test_subscriber_reports_group_by_agent():
    ua = "NewsBlur Feed Fetcher - 54 subscribers - https://www.newsblur.com/site/1/x"
    first = resolve_uniq("198.51.100.1", ua, "NewsBlur Feed Fetcher")
    second = resolve_uniq("192.0.2.200", ua, "NewsBlur Feed Fetcher")
    assert first == second == fingerprint("NewsBlur Feed Fetcher")


def test_agent_required_for_grouping():
    ua = "FeedReader/1.0 feed-id:42"
    assert resolve_uniq("198.51.100.1", ua, "") == fingerprint("198.51.100.1" + ua)


def test_empty_user_agent_uses_address():
    assert resolve_uniq("198.51.100.1", "", "Something") == fingerprint("198.51.100.1")


def test_extract_feed_id():
    assert extract_feed_id("x FEED-ID:Abc9") == "Abc9"
    assert extract_feed_id("no marker") == ""


def test_subscriber_count_detection():
    assert parse_subscriber_count("Feedly/1.0 (42 subscribers)") == 42
    assert parse_subscriber_count("Feedly/1.0") is None
    assert is_subscriber_count("Inoreader/1.0 (1 subscriber)")
    assert not is_subscriber_count("Mozilla/5.0")


def test_markers_use_ascii_characters_only():
    assert parse_subscriber_count("Reader ١٢ subscribers") is None
    assert extract_feed_id("Reader feed-id:١٢") == ""
