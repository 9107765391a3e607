"""User-agent classification.

Derives the canonical agent name, visitor type, operating system, subscriber
multiplier and referrer domain of a hit from its raw header strings. All
functions here are pure: no I/O, no shared mutable state, and an unmatched
pattern produces an empty or default value rather than an error.

Agent names come from an ordered chain of extraction rules. The first rule
producing a non-empty (trimmed) name wins, so the order of AGENT_RULES is
significant.
"""
import re
from typing import Optional, Tuple

from hitstats.constants import OperatingSystem, VisitorType
from hitstats.schemas.event import EventRecord
from hitstats.services.identity import parse_subscriber_count, resolve_uniq
from hitstats.utils.url import referrer_domain

_FLAGS = re.IGNORECASE | re.ASCII


class AgentRule:
    """A single agent-name extraction rule."""

    name = "rule"

    def __init__(self, pattern: str, group: int = 0):
        self.pattern: re.Pattern[str] = re.compile(pattern, _FLAGS)
        self.group = group

    def candidate(self, match: "re.Match[str]") -> str:
        return match.group(self.group) or ""

    def extract(self, user_agent: str) -> str:
        """Return the (untrimmed) name this rule finds, or ""."""
        match = self.pattern.search(user_agent)
        if match is None:
            return ""
        return self.candidate(match)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class LiteralRule(AgentRule):
    """Yields a fixed name whenever the pattern is present."""

    def __init__(self, pattern: str, literal: str):
        super().__init__(pattern)
        self.literal = literal

    def candidate(self, match: "re.Match[str]") -> str:
        return self.literal


class ExcludingRule(AgentRule):
    """Yields the captured name unless it is one of the excluded tokens."""

    def __init__(self, pattern: str, excluded: Tuple[str, ...], group: int = 1, ignore_case: bool = False):
        super().__init__(pattern, group)
        self.ignore_case = ignore_case
        self.excluded = frozenset(e.lower() for e in excluded) if ignore_case else frozenset(excluded)

    def candidate(self, match: "re.Match[str]") -> str:
        value = super().candidate(match)
        key = value.lower() if self.ignore_case else value
        return "" if key in self.excluded else value


class NotMozillaRule(AgentRule):
    """Yields the captured name unless it is, or starts with, "mozilla"."""

    def candidate(self, match: "re.Match[str]") -> str:
        value = super().candidate(match)
        return "" if value.lower().startswith("mozilla") else value


def _named(rule: AgentRule, name: str) -> AgentRule:
    rule.name = name
    return rule


# Tokens that appear after the real browser name in WebKit/Blink user agents
ENGINE_TOKENS = ("Chrome", "Version", "Mobile", "Safari", "Mobile Safari")

AGENT_RULES: Tuple[AgentRule, ...] = (
    _named(AgentRule(r"(?:Leed|BeyondPod|360Spider|Lark|Nutch|Skype|leakix\.net|uni-app)"), "special"),
    _named(
        AgentRule(r"^[0-9A-F]{8}-[0-9A-F]{4}-[0-9A-F]{4}-[0-9A-F]{4}-[0-9A-F]{12}/\d+ ([^;(/]+)", group=1),
        "uuid_prefix",
    ),
    _named(AgentRule(r"compatible; ([^;(/+]*[^;(/+ ])", group=1), "compatible"),
    _named(AgentRule(r"^[\w.\-@ ]*[\w.\-@] (?:ro)?bot"), "bot_phrase"),
    _named(AgentRule(r"\b[\w\-]+bot\b"), "bot_word"),
    _named(LiteralRule(r"Trident/[0-9.]+", "Trident"), "trident"),
    _named(
        ExcludingRule(
            r"^Mozilla/.* ([A-Za-z0-9_]+)/[A-Z0-9.]+(?: (?:Chrome|Version|Mobile|Safari|Mobile Safari)/[A-Z0-9.]+)+\Z",
            ENGINE_TOKENS,
        ),
        "mozilla_engine",
    ),
    _named(
        ExcludingRule(
            r"^Mozilla/.* ([A-Za-z0-9_]+)/[0-9.]+(?: Mobile)? Safari/[0-9.]+\Z",
            ("Version",),
            ignore_case=True,
        ),
        "mozilla_safari",
    ),
    _named(
        AgentRule(r"^Mozilla/.* ([A-Za-z0-9_]+)/[a-z0-9.]+(?: \([^)]+\)| Mobile| GTB[0-9.]+)*\Z", group=1),
        "mozilla_tail",
    ),
    _named(AgentRule(r"^([\w.\-@ ]*[\w.\-@]) feed-id:", group=1), "feed_id"),
    _named(AgentRule(r"^([\w.@ ]*[\w.@]) - ", group=1), "before_dash"),
    _named(AgentRule(r"^([\w.\-@ ]*[\w.\-@])[- ]v?\d+\.\d+", group=1), "before_version"),
    _named(NotMozillaRule(r"^([\w.\-@% ]*[\w.\-@%]) ?[/(:+]", group=1), "before_delimiter"),
    _named(AgentRule(r"^[\w.\-@ ]*[\w.\-@]\Z"), "single_word"),
)

BROWSER_AGENTS = frozenset({
    "Chrome", "Firefox", "Edg", "EdgA", "EdgiOS", "Safari", "OPR",
    "YaBrowser", "Vivaldi", "SamsungBrowser", "UCBrowser",
})

RSS_PATTERN = re.compile(r"rss", re.IGNORECASE)
BOT_PATTERN = re.compile(
    r"bot|crawl|fetch|node|ruby|.rb|python|curl|okhttp|spider|scan|nutch|mastodon|\+http",
    re.IGNORECASE,
)

# Checked in order; the first match wins
OS_PATTERNS: Tuple[Tuple[str, re.Pattern[str]], ...] = (
    (OperatingSystem.ANDROID, re.compile(r"Android", re.IGNORECASE)),
    (OperatingSystem.WINDOWS, re.compile(r"Windows", re.IGNORECASE)),
    (OperatingSystem.IOS, re.compile(r"iOS|iPhone|iPad|Mobile.*Safari", re.IGNORECASE)),
    (OperatingSystem.MACOS, re.compile(r"macOS|Mac OS|Macintosh|Darwin", re.IGNORECASE)),
    (OperatingSystem.LINUX, re.compile(r"Linux|X11", re.IGNORECASE)),
)

# Fields the analyzer fills when the caller left them empty
DERIVED_FIELDS = ("agent", "type", "os", "mult", "uniq", "ref_domain")


def dequote(value: str) -> str:
    """Strip one layer of surrounding double quotes."""
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def derive_agent(user_agent: str) -> str:
    """Return the canonical agent name for a user agent, or "" if none matches."""
    if not user_agent:
        return ""
    ua = dequote(user_agent)
    for rule in AGENT_RULES:
        value = rule.extract(ua).strip()
        if value:
            return value
    return ""


def derive_type(agent: str, user_agent: str) -> str:
    """Return the visitor type; anything unrecognised counts as a bot."""
    if user_agent and RSS_PATTERN.search(user_agent):
        return VisitorType.FEED
    if agent in BROWSER_AGENTS:
        return VisitorType.BROWSER
    if user_agent and BOT_PATTERN.search(user_agent):
        return VisitorType.BOT
    if user_agent.startswith("Mozilla/"):
        return VisitorType.BROWSER
    return VisitorType.BOT


def derive_os(user_agent: str) -> str:
    """Return the operating system family, or "" if unknown."""
    for os_name, pattern in OS_PATTERNS:
        if pattern.search(user_agent):
            return os_name
    return ""


def derive_multiplier(user_agent: str) -> int:
    """Return the self-reported subscriber count, or 1."""
    count: Optional[int] = parse_subscriber_count(user_agent)
    if count is None or count < 1:
        return 1
    return count


def derive(record: EventRecord) -> EventRecord:
    """
    Compute every derivable field of a record from its raw strings.

    Caller-supplied agent and type are honoured as inputs to the steps that
    depend on them, so derived values agree with the merged record.
    """
    agent = record.agent or derive_agent(record.user_agent)
    return record.model_copy(update={
        "agent": agent,
        "type": record.type or derive_type(agent, record.user_agent),
        "os": derive_os(record.user_agent),
        "mult": derive_multiplier(record.user_agent),
        "uniq": resolve_uniq(record.ip, record.user_agent, agent),
        "ref_domain": referrer_domain(record.referrer),
    })


def merge(partial: EventRecord, derived: EventRecord) -> EventRecord:
    """Return a record where every non-empty field of ``partial`` wins over ``derived``."""
    update = {}
    for field in DERIVED_FIELDS:
        if not getattr(partial, field):
            update[field] = getattr(derived, field)
    return partial.model_copy(update=update)


def analyze(record: EventRecord) -> EventRecord:
    """Classify and fingerprint a record, filling only the fields that are empty."""
    if all(getattr(record, field) for field in DERIVED_FIELDS):
        return record
    return merge(record, derive(record))
