"""
User-Agent signatures for search-engine crawlers and known-bad clients.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class CrawlerSignature:
    """
    Identity of a search-engine crawler operator.

    Attributes:
        name: Operator name used in logs
        user_agents: Exact User-Agent strings the operator sends
        user_agent_patterns: Regular expressions for versioned User-Agents
        hostname_pattern: Pattern the reverse DNS hostname must match
    """
    name: str
    user_agents: frozenset[str]
    user_agent_patterns: tuple[re.Pattern[str], ...]
    hostname_pattern: re.Pattern[str]

    def claims(self, user_agent: str) -> bool:
        """Whether the User-Agent claims to be this operator's crawler."""
        if user_agent in self.user_agents:
            return True
        return any(p.search(user_agent) for p in self.user_agent_patterns)

    def owns_hostname(self, hostname: str) -> bool:
        return bool(self.hostname_pattern.match(hostname))


GOOGLE = CrawlerSignature(
    name="Googlebot",
    user_agents=frozenset({
        "APIs-Google (+https://developers.google.com/webmasters/APIs-Google.html)",
        "Mediapartners-Google",
        "Mozilla/5.0 (Linux; Android 5.0; SM-G920A) AppleWebKit (KHTML, like Gecko) Chrome Mobile Safari (compatible; AdsBot-Google-Mobile; +http://www.google.com/mobile/adsbot.html)",
        "Mozilla/5.0 (iPhone; CPU iPhone OS 9_1 like Mac OS X) AppleWebKit/601.1.46 (KHTML, like Gecko) Version/9.0 Mobile/13B143 Safari/601.1 (compatible; AdsBot-Google-Mobile; +http://www.google.com/mobile/adsbot.html)",
        "AdsBot-Google (+http://www.google.com/adsbot.html)",
        "Googlebot-Image/1.0",
        "Googlebot-News",
        "Googlebot-Video/1.0",
        "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
        "Mozilla/5.0 AppleWebKit/537.36 (KHTML, like Gecko; compatible; Googlebot/2.1; +http://www.google.com/bot.html) Safari/537.36",
        "Googlebot/2.1 (+http://www.google.com/bot.html)",
        "AdsBot-Google-Mobile-Apps",
        "FeedFetcher-Google; (+http://www.google.com/feedfetcher.html)",
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/41.0.2272.118 Safari/537.36 (compatible; Google-Read-Aloud; +https://support.google.com/webmasters/answer/1061943)",
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/49.0.2623.75 Safari/537.36 Google Favicon",
        "Mozilla/5.0 (Linux; Android 8.0; Pixel 2 Build/OPD3.170816.012; DuplexWeb-Google/1.0) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/74.0.3729.131 Mobile Safari/537.36",
    }),
    user_agent_patterns=(
        re.compile(r"^Mozilla/5\.0 AppleWebKit/537\.36 \(KHTML, like Gecko; compatible; Googlebot/2\.1; \+http://www\.google\.com/bot\.html\) Chrome/[0-9]+\.[0-9]+\.[0-9]+\.[0-9]+ Safari/537\.36$"),
        re.compile(r"^Mozilla/5\.0 \(Linux; Android 6\.0\.1; Nexus 5X Build/MMB29P\) AppleWebKit/537\.36 \(KHTML, like Gecko\) Chrome/[0-9]+\.[0-9]+\.[0-9]+\.[0-9]+ Mobile Safari/537\.36 \(compatible; Googlebot/2\.1; \+http://www\.google\.com/bot\.html\)$"),
        re.compile(r" \(compatible; Mediapartners-Google/2\.1; \+http://www\.google\.com/bot\.html\)$"),
        re.compile(r" GoogleAdSenseInfeed\)"),
    ),
    hostname_pattern=re.compile(r"^.+\.google(bot)?\.com$", re.IGNORECASE),
)

BING = CrawlerSignature(
    name="Bingbot",
    user_agents=frozenset({
        "Mozilla/5.0 (compatible; bingbot/2.0; +http://www.bing.com/bingbot.htm)",
        "Mozilla/5.0 (compatible; adidxbot/2.0; +http://www.bing.com/bingbot.htm)",
        "Mozilla/5.0 (iPhone; CPU iPhone OS 7_0 like Mac OS X) AppleWebKit/537.51.1 (KHTML, like Gecko) Version/7.0 Mobile/11A465 Safari/9537.53 (compatible; adidxbot/2.0; +http://www.bing.com/bingbot.htm)",
        "Mozilla/5.0 (iPhone; CPU iPhone OS 7_0 like Mac OS X) AppleWebKit/537.51.1 (KHTML, like Gecko) Version/7.0 Mobile/11A465 Safari/9537.53 (compatible; bingbot/2.0; +http://www.bing.com/bingbot.htm)",
        "Mozilla/5.0 (Windows Phone 8.1; ARM; Trident/7.0; Touch; rv:11.0; IEMobile/11.0; NOKIA; Lumia 530) like Gecko (compatible; adidxbot/2.0; +http://www.bing.com/bingbot.htm)",
        "Mozilla/5.0 (Windows Phone 8.1; ARM; Trident/7.0; Touch; rv:11.0; IEMobile/11.0; NOKIA; Lumia 530) like Gecko (compatible; bingbot/2.0; +http://www.bing.com/bingbot.htm)",
        "Mozilla/5.0 (Windows NT 6.1; WOW64) AppleWebKit/534+ (KHTML, like Gecko) BingPreview/1.0b",
        "Mozilla/5.0 (Windows Phone 8.1; ARM; Trident/7.0; Touch; rv:11.0; IEMobile/11.0; NOKIA; Lumia 530) like Gecko BingPreview/1.0b",
    }),
    user_agent_patterns=(
        re.compile(r"^Mozilla/5\.0 AppleWebKit/537\.36 \(KHTML, like Gecko; compatible; bingbot/2\.0; \+http://www\.bing\.com/bingbot\.htm\) Chrome/[0-9]+\.[0-9]+\.[0-9]+\.[0-9]+ Safari/537\.36$"),
        re.compile(r"^Mozilla/5\.0 AppleWebKit/537\.36 \(KHTML, like Gecko; compatible; bingbot/2\.0; \+http://www\.bing\.com/bingbot\.htm\) Chrome/[0-9]+\.[0-9]+\.[0-9]+\.[0-9]+ Safari/537\.36 Edg/[0-9]+\.[0-9]+\.[0-9]+\.[0-9]+$"),
        re.compile(r"^Mozilla/5\.0 \(Linux; Android 6\.0\.1; Nexus 5X Build/MMB29P\) AppleWebKit/537\.36 \(KHTML, like Gecko\) Chrome/[0-9]+\.[0-9]+\.[0-9]+\.[0-9]+ Mobile Safari/537\.36 \(compatible; bingbot/2\.0; \+http://www\.bing\.com/bingbot\.htm\)$"),
        re.compile(r"^Mozilla/5\.0 \(Linux; Android 6\.0\.1; Nexus 5X Build/MMB29P\) AppleWebKit/537\.36 \(KHTML, like Gecko\) Chrome/[0-9]+\.[0-9]+\.[0-9]+\.[0-9]+ Mobile Safari/537\.36 Edg/[0-9]+\.[0-9]+\.[0-9]+\.[0-9]+ \(compatible; bingbot/2\.0; \+http://www\.bing\.com/bingbot\.htm\)$"),
    ),
    hostname_pattern=re.compile(r"^.+\.search\.msn\.com$", re.IGNORECASE),
)

# Checked in order, first claim wins
CRAWLERS: tuple[CrawlerSignature, ...] = (GOOGLE, BING)


# Hostile crawlers, scripted HTTP libraries, scanners and headless browsers
BAD_AGENTS = (
    "^WordPress",
    "^WinHTTP",
    "^CRAZYWEBCRAWLER",
    "^okhttp",
    "AhrefsBot",
    "^Twitterbot",
    "^Python-urllib",
    "^python-requests",
    "^amppari",
    "RPT-HTTPClient",
    "OpenHoseBot",
    "^WebTarantula",
    "MSIECrawler",
    "^WeBoX",
    "^WebZIP",
    "^WordChampBot",
    r"^Y!TunnelPro",
    "Snacktory",
    "NetcraftSurveyAgent",
    " Daumoa",
    "^Natasha",
    "linkdexbot",
    "sqlmap",
    "PhantomJS",
    "MJ12bot",
    "TelegramBot",
    "SeznamBot",
    "coccocbot-web",
    "admantx-",
    "^SentiBot",
    "Qwantify",
    "^WNMCrawler",
    "Headless",
)

BAD_AGENT_RE = re.compile("(" + "|".join(BAD_AGENTS) + ")")
"""Single alternation over :py:obj:`BAD_AGENTS`, compiled once at import."""


def is_bad_agent(user_agent: str) -> bool:
    """
    Check a User-Agent against the deny-list.

    Examples:
        >>> is_bad_agent("sqlmap/1.0")
        True
        >>> is_bad_agent("Mozilla/5.0 (X11; Linux x86_64) Firefox/128.0")
        False
    """
    return BAD_AGENT_RE.search(user_agent) is not None
