"""Matcher-Hinweise für den Klassifizierungs-Prompt.

Matcher sind reine Empfehlungen: sie landen als Textzeilen im Prompt und
fließen in die Confidence-Bewertung ein, überschreiben aber nie die
Entscheidung des Providers.
"""

from __future__ import annotations

from dataclasses import dataclass

from dailies.catalog.models import ContentItem, MatcherType
from dailies.catalog.snapshot import CatalogSnapshot


@dataclass(frozen=True)
class MatcherHint:
    """Ein auf den Inhalt zutreffender Matcher."""

    category_id: int
    category_name: str
    pattern: str
    matcher_type: MatcherType
    is_exclusion: bool

    @property
    def text(self) -> str:
        """Formulierung für den Prompt."""
        if self.matcher_type == MatcherType.DOMAIN:
            if self.is_exclusion:
                return f"AVOID categorizing as {self.category_name}"
            return f"Content from {self.pattern} is typically {self.category_name}"
        if self.is_exclusion:
            return f"Presence of '{self.pattern}' suggests NOT {self.category_name}"
        return f"Keyword '{self.pattern}' suggests {self.category_name}"


def generate_hints(item: ContentItem, snapshot: CatalogSnapshot) -> list[MatcherHint]:
    """Sammelt alle Matcher, deren Muster auf Domain bzw. Text zutrifft.

    Domain-Matcher prüfen Teilstring-Vorkommen in der Quelldomain,
    Keyword-Matcher in Titel + Text (jeweils case-insensitive).
    """
    domain = item.clean_domain
    text = f"{item.title} {item.raw_content}".lower()
    hints: list[MatcherHint] = []

    for matcher in snapshot.matchers:
        pattern = matcher.pattern.strip().lower()
        if not pattern:
            continue
        haystack = domain if matcher.matcher_type == MatcherType.DOMAIN else text
        if pattern not in haystack:
            continue

        category = snapshot.get_category(matcher.category_id)
        if category is None:
            continue
        hints.append(
            MatcherHint(
                category_id=category.id,
                category_name=category.name,
                pattern=matcher.pattern,
                matcher_type=matcher.matcher_type,
                is_exclusion=matcher.is_exclusion,
            )
        )

    return hints
