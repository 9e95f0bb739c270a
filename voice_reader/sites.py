import re
from typing import Callable, List, Optional, Tuple
from urllib.parse import quote_plus, urlparse

from .ai import chat_completion
from .config import SEARCH_URL
from .errors import EmptyQuery
from .logs import log_line
from .models import SiteResolution
from .preferences import AIConfig

SITE_ALIASES: List[Tuple[str, List[str]]] = [
    ("https://www.youtube.com/", ["youtube", "you tube"]),
    ("https://www.google.com/", ["google", "google search"]),
    ("https://mail.google.com/", ["gmail", "google mail"]),
    ("https://www.wikipedia.org/", ["wikipedia", "wiki"]),
    ("https://www.amazon.com/", ["amazon"]),
    ("https://www.netflix.com/", ["netflix"]),
    ("https://www.reddit.com/", ["reddit"]),
    ("https://www.facebook.com/", ["facebook"]),
    ("https://www.instagram.com/", ["instagram", "insta"]),
    ("https://www.linkedin.com/", ["linkedin", "linked in"]),
    ("https://github.com/", ["github", "git hub"]),
    ("https://stackoverflow.com/", ["stack overflow", "stackoverflow"]),
    ("https://www.bbc.com/news", ["bbc", "bbc news"]),
    ("https://www.cnn.com/", ["cnn"]),
    ("https://www.nytimes.com/", ["new york times", "nytimes", "ny times"]),
    ("https://news.ycombinator.com/", ["hacker news", "hackernews"]),
    ("https://www.weather.com/", ["weather", "weather channel"]),
    ("https://www.espn.com/", ["espn"]),
    ("https://www.spotify.com/", ["spotify"]),
    ("https://www.twitch.tv/", ["twitch"]),
    ("https://outlook.live.com/", ["outlook", "hotmail"]),
    ("https://www.bing.com/", ["bing"]),
    ("https://chatgpt.com/", ["chatgpt", "chat gpt"]),
    ("https://x.com/", ["twitter", "x"]),
]

SITE_RESOLVER_PROMPT = (
    "You map informal website names to their official homepage. "
    "Reply with only the canonical absolute URL of the site the user means, "
    "or the single word UNKNOWN if you are not sure."
)
SITE_RESOLVER_MAX_TOKENS = 60


def normalize_query(raw_query: str) -> str:
    return (raw_query or "").strip().lower()


def alias_key(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", (text or "").lower())


def match_alias(query: str) -> Optional[str]:
    key = alias_key(query)
    if not key:
        return None
    for url, aliases in SITE_ALIASES:
        if any(alias_key(alias) == key for alias in aliases):
            return url
    # Short aliases such as "x" also match inside longer queries.
    for url, aliases in SITE_ALIASES:
        if any(alias_key(alias) and alias_key(alias) in key for alias in aliases):
            return url
    return None


def normalize_site_url(candidate: str) -> Optional[str]:
    text = (candidate or "").strip().strip("`'\"<>")
    if not text:
        return None
    text = text.split()[0].rstrip(".,;:!?)")
    if text.upper() == "UNKNOWN":
        return None
    if not re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*://", text):
        text = "https://" + text
    parsed = urlparse(text)
    if parsed.scheme not in {"http", "https"}:
        return None
    host = parsed.hostname or ""
    if "." not in host or host.startswith(".") or host.endswith("."):
        return None
    if not re.fullmatch(r"[a-z0-9.-]+", host):
        return None
    return text


def build_search_url(raw_query: str) -> str:
    return SEARCH_URL + quote_plus((raw_query or "").strip())


class SiteResolver:
    def __init__(
        self,
        config_loader: Callable[[], AIConfig],
        completion: Callable[..., str] = chat_completion,
    ) -> None:
        self._config_loader = config_loader
        self._completion = completion

    def resolve_with_ai(self, query: str) -> Optional[str]:
        config = self._config_loader()
        if not config.has_credential:
            return None
        messages = [
            {"role": "system", "content": SITE_RESOLVER_PROMPT},
            {"role": "user", "content": query},
        ]
        try:
            answer = self._completion(
                config,
                messages,
                temperature=0,
                max_tokens=SITE_RESOLVER_MAX_TOKENS,
            )
        except Exception as exc:
            log_line(f"WARN: AI site resolution failed ({exc}); using search instead.")
            return None
        url = normalize_site_url(answer)
        if url is None:
            log_line(f"  AI could not resolve '{query}' (answer: {answer[:80]!r}).")
        return url

    def resolve_site(self, raw_query: str) -> SiteResolution:
        query = normalize_query(raw_query)
        if not query:
            raise EmptyQuery()

        matched_url = match_alias(query)
        if matched_url is None:
            matched_url = self.resolve_with_ai(query)

        if matched_url is not None:
            return SiteResolution(
                requested_query=raw_query,
                matched_url=matched_url,
                final_url=matched_url,
                matched=True,
            )
        return SiteResolution(
            requested_query=raw_query,
            matched_url=None,
            final_url=build_search_url(raw_query),
            matched=False,
        )
