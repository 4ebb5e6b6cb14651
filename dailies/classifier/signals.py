"""Inhaltssignale für die Confidence-Bewertung.

Reine Funktionen ohne I/O – berechnen aus Titel, Text, URL und Domain:
- politische Keyword-Dichte, US-Bezug, Behörden-Erwähnungen
- Domain-Kontext (Nachrichten-, Politik-, Tech-, Social-Domains)
- URL-Kontext (Pfadsegmente wie /politics/, /election/)
- typabhängige Textauswahl für den Klassifizierungs-Prompt
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlparse

from dailies.catalog.models import ContentItem, ContentType

# ---------------------------------------------------------------------------
# Wortlisten
# ---------------------------------------------------------------------------

POLITICAL_KEYWORDS = (
    "biden", "trump", "harris", "congress", "senate", "house",
    "election", "vote", "voting", "campaign", "republican", "democrat",
    "gop", "dnc", "rnc", "president", "administration", "government",
    "policy", "legislation", "bill", "law", "supreme court", "scotus",
    "governor", "mayor", "political", "politics",
)

US_INDICATORS = (
    "america", "american", "usa", "united states", "us ", "washington dc",
    "white house", "capitol hill", "federal", "state", "constitution",
)

GOVERNMENT_ENTITIES = (
    "fbi", "cia", "nsa", "doj", "department of", "agency", "bureau",
    "commission", "committee", "subcommittee",
)

# Domain-Gruppen → Beitrag zum politischen Domain-Score
DOMAIN_GROUPS: dict[str, tuple[str, ...]] = {
    "major_news": ("cnn.com", "foxnews.com", "msnbc.com", "nytimes.com", "washingtonpost.com"),
    "political_news": ("politico.com", "thehill.com", "rollcall.com", "axios.com"),
    "wire_services": ("reuters.com", "ap.org", "bloomberg.com"),
    "broadcast_news": ("cbs.com", "nbc.com", "abc.com", "npr.org"),
    "opinion": ("slate.com", "vox.com", "huffpost.com", "dailybeast.com"),
    "conservative": ("foxnews.com", "nypost.com", "wsj.com", "nationalreview.com"),
    "liberal": ("msnbc.com", "cnn.com", "huffpost.com", "motherjones.com"),
    "social": ("twitter.com", "x.com", "facebook.com", "reddit.com"),
    "tech": ("techcrunch.com", "wired.com", "arstechnica.com", "verge.com"),
}

DOMAIN_POLITICAL_WEIGHTS: dict[str, int] = {
    "major_news": 2,
    "political_news": 4,
    "wire_services": 1,
    "broadcast_news": 2,
    "opinion": 1,
}

# Ab diesem Score gilt eine Domain als politisch
DOMAIN_POLITICAL_THRESHOLD = 2

_ELECTION_PATH = re.compile(r"\b(election|vote|campaign|primary)\b")
_POLITICS_PATH = re.compile(r"\b(politics|government|congress|senate)\b")
_NEWS_PATH = re.compile(r"\b(news|breaking|latest)\b")
_OPINION_PATH = re.compile(r"\b(opinion|editorial|op-ed)\b")

# Maximale Textlänge im Prompt je Inhaltstyp
TEXT_LIMITS: dict[ContentType, int] = {
    ContentType.ARTICLE: 2000,
    ContentType.VIDEO: 1000,
    ContentType.POST: 1000,
    ContentType.OTHER: 1500,
}


# ---------------------------------------------------------------------------
# Datenstrukturen
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextSignals:
    """Keyword-basierte Signale aus Titel und Text."""

    political_keyword_density: float = 0.0
    political_keyword_count: int = 0
    total_word_count: int = 0
    has_us_indicators: bool = False
    has_government_entities: bool = False


@dataclass(frozen=True)
class DomainContext:
    """Einordnung der Quelldomain."""

    groups: frozenset[str] = frozenset()
    political_score: int = 0

    @property
    def is_political(self) -> bool:
        return self.political_score >= DOMAIN_POLITICAL_THRESHOLD

    @property
    def is_tech(self) -> bool:
        return "tech" in self.groups

    @property
    def is_social(self) -> bool:
        return "social" in self.groups


@dataclass(frozen=True)
class UrlContext:
    """Hinweise aus dem URL-Pfad."""

    has_election_path: bool = False
    has_politics_path: bool = False
    has_news_path: bool = False
    has_opinion_path: bool = False
    political_score: int = 0


@dataclass(frozen=True)
class ContentSignals:
    """Alle Signale eines Inhalts, einmal pro Klassifizierung berechnet."""

    text: TextSignals
    domain: DomainContext
    url: UrlContext


# ---------------------------------------------------------------------------
# Berechnung
# ---------------------------------------------------------------------------

def calculate_text_signals(title: str, text: str) -> TextSignals:
    all_text = f"{title} {text}".lower()
    words = all_text.split()
    political_matches = [
        w for w in words if any(keyword in w for keyword in POLITICAL_KEYWORDS)
    ]
    # Mehrwort-Keywords ("supreme court") tauchen im Wort-Split nicht auf
    political_count = len(political_matches) + sum(
        all_text.count(k) for k in POLITICAL_KEYWORDS if " " in k
    )

    return TextSignals(
        political_keyword_density=political_count / max(len(words), 1),
        political_keyword_count=political_count,
        total_word_count=len(words),
        has_us_indicators=any(i in all_text for i in US_INDICATORS),
        has_government_entities=any(e in all_text for e in GOVERNMENT_ENTITIES),
    )


def extract_domain_context(domain: str) -> DomainContext:
    clean = domain.lower().strip()
    if clean.startswith("www."):
        clean = clean[4:]
    if not clean:
        return DomainContext()

    groups = frozenset(
        group for group, domains in DOMAIN_GROUPS.items()
        if any(d in clean for d in domains)
    )
    score = sum(DOMAIN_POLITICAL_WEIGHTS.get(g, 0) for g in groups)
    return DomainContext(groups=groups, political_score=score)


def extract_url_context(url: str) -> UrlContext:
    if not url:
        return UrlContext()
    try:
        path = urlparse(url).path.lower()
    except ValueError:
        return UrlContext()

    context = {
        "has_election_path": bool(_ELECTION_PATH.search(path)),
        "has_politics_path": bool(_POLITICS_PATH.search(path)),
        "has_news_path": bool(_NEWS_PATH.search(path)),
        "has_opinion_path": bool(_OPINION_PATH.search(path)),
    }
    score = (
        3 * context["has_election_path"]
        + 3 * context["has_politics_path"]
        + context["has_news_path"]
        + context["has_opinion_path"]
    )
    return UrlContext(political_score=score, **context)


def calculate_content_signals(item: ContentItem) -> ContentSignals:
    """Berechnet alle Signale für einen Inhalt."""
    return ContentSignals(
        text=calculate_text_signals(item.title, item.raw_content),
        domain=extract_domain_context(item.source_domain),
        url=extract_url_context(item.url),
    )


def extract_text_for_prompt(item: ContentItem) -> str:
    """Typabhängiger Textausschnitt für den Klassifizierungs-Prompt."""
    text = " ".join(item.raw_content.split())
    return text[:TEXT_LIMITS.get(item.content_type, 1500)]
