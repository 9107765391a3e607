"""Application-wide constants."""

# Visitor categories stored in stats.type
class VisitorType:
    """Visitor type constants."""
    FEED = "feed"
    BOT = "bot"
    BROWSER = "browser"

    ALL = (FEED, BOT, BROWSER)


# Operating systems stored in stats.os (NULL when unknown)
class OperatingSystem:
    """Operating system constants."""
    ANDROID = "Android"
    WINDOWS = "Windows"
    IOS = "iOS"
    MACOS = "macOS"
    LINUX = "Linux"

    ALL = (ANDROID, WINDOWS, IOS, MACOS, LINUX)


# Columns reporting may filter and break down on
FILTER_COLUMNS = ("host", "path", "query", "ref_domain", "agent", "type", "os")

# Response content types that mark a hit as a feed fetch
FEED_CONTENT_TYPES = ("application/atom+xml", "application/rss+xml")
