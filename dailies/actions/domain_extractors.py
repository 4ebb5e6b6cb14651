"""Regelbasierte Extraktoren für Fachkategorien.

Tech, Sport, 3D-Druck, DIY-Elektronik und Smart Home.  Reine Funktionen
über dem Inhaltstext, ohne Provider-Aufrufe.
"""

from __future__ import annotations

import re
from typing import Any

from dailies.actions.text import count_words, extract_context, word_pattern
from dailies.catalog.models import ContentItem

# ---------------------------------------------------------------------------
# Technologie
# ---------------------------------------------------------------------------

TECH_TREND_KEYWORDS = (
    "artificial intelligence", "machine learning", "blockchain", "cryptocurrency",
    "quantum computing", "edge computing", "cloud computing", "5G", "6G",
    "internet of things", "iot", "augmented reality", "virtual reality",
    "autonomous vehicles", "robotics", "automation", "cybersecurity",
)

CODE_PATTERNS = (
    re.compile(r"```[\s\S]*?```"),
    re.compile(r"`[^`]+`"),
    re.compile(r"\b[A-Z_]+\s*=\s*[^;]+"),
    re.compile(r"function\s+\w+\s*\("),
    re.compile(r"class\s+\w+"),
)

TECHNICAL_TERMS = (
    "algorithm", "api", "framework", "library", "database", "server",
    "client", "protocol", "encryption", "authentication", "deployment",
    "scalability", "performance", "optimization", "architecture",
)

TECHNOLOGIES: dict[str, tuple[str, ...]] = {
    "languages": ("javascript", "python", "java", "typescript", "rust", "go", "c++", "c#"),
    "frameworks": ("react", "vue", "angular", "svelte", "next.js", "express", "django", "flask"),
    "databases": ("mysql", "postgresql", "mongodb", "redis", "elasticsearch", "sqlite"),
    "cloud": ("aws", "azure", "gcp", "docker", "kubernetes", "terraform"),
    "tools": ("git", "webpack", "vite", "eslint", "prettier", "jest", "cypress"),
}

# (Stack, Gruppe, Technologie)
PRIMARY_STACKS = (
    ("React", "frameworks", "react"),
    ("Vue", "frameworks", "vue"),
    ("Angular", "frameworks", "angular"),
    ("Node.js", "languages", "javascript"),
    ("Python", "languages", "python"),
    ("Java", "languages", "java"),
)

ADVANCED_CODE_BLOCKS, ADVANCED_DENSITY = 5, 0.05
INTERMEDIATE_CODE_BLOCKS, INTERMEDIATE_DENSITY = 2, 0.02


def extract_tech_trends(item: ContentItem) -> dict[str, Any]:
    text = item.raw_content
    trends = []
    for keyword in TECH_TREND_KEYWORDS:
        mentions = len(word_pattern(keyword).findall(text))
        if mentions:
            trends.append({
                "trend": keyword,
                "mentions": mentions,
                "context": extract_context(text, keyword),
            })
    trends.sort(key=lambda t: t["mentions"], reverse=True)
    return {
        "tech_trends": trends,
        "trend_count": len(trends),
        "top_trend": trends[0] if trends else None,
    }


def analyze_technical_depth(item: ContentItem) -> dict[str, Any]:
    text = item.raw_content
    code_blocks = sum(len(p.findall(text)) for p in CODE_PATTERNS)
    term_count = sum(len(word_pattern(t).findall(text)) for t in TECHNICAL_TERMS)
    density = term_count / max(count_words(text), 1)

    if code_blocks > ADVANCED_CODE_BLOCKS or density > ADVANCED_DENSITY:
        depth = "advanced"
    elif code_blocks > INTERMEDIATE_CODE_BLOCKS or density > INTERMEDIATE_DENSITY:
        depth = "intermediate"
    else:
        depth = "beginner"

    return {
        "technical_depth": depth,
        "code_blocks": code_blocks,
        "technical_terms": term_count,
        "technical_density": density,
        "complexity_score": min(10.0, code_blocks * 2 + density * 100),
    }


def extract_tools_and_technologies(item: ContentItem) -> dict[str, Any]:
    text = item.raw_content
    found = {
        group: [tech for tech in techs if word_pattern(tech).search(text)]
        for group, techs in TECHNOLOGIES.items()
    }
    return {
        "technologies_found": found,
        "total_technologies": sum(len(v) for v in found.values()),
        "primary_stack": determine_primary_stack(found),
    }


def determine_primary_stack(found: dict[str, list[str]]) -> list[str]:
    return [stack for stack, group, tech in PRIMARY_STACKS if tech in found.get(group, [])]


# ---------------------------------------------------------------------------
# Sport
# ---------------------------------------------------------------------------

STAT_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("score", re.compile(r"\b\d+\s*-\s*\d+\b")),
    ("percentage", re.compile(r"\b\d+\.\d+%")),
    ("yards", re.compile(r"\b\d+\s+yards?\b", re.IGNORECASE)),
    ("points", re.compile(r"\b\d+\s+points?\b", re.IGNORECASE)),
    ("time", re.compile(r"\b\d+:\d+\b")),
)

TEAM_PATTERNS = (
    re.compile(r"\b[A-Z][a-z]+\s+(?:Lakers|Warriors|Celtics|Bulls|Heat|Spurs)\b"),
    re.compile(r"\b(?:New York|Los Angeles|Chicago|Boston|Miami)\s+[A-Z][a-z]+\b"),
    re.compile(r"\b[A-Z][a-z]+\s+(?:FC|United|City|Arsenal|Chelsea)\b"),
)

PLAYER_PATTERN = re.compile(r"\b[A-Z][a-z]+\s+[A-Z][a-z]+\b")
NON_PLAYER_PREFIX = re.compile(
    r"^(Last|First|New|Old|Big|Small|Good|Bad|Next|This|That|The|And|But|For|With|From)\s",
    re.IGNORECASE,
)
MAX_PLAYERS = 10


def extract_sports_stats(item: ContentItem) -> dict[str, Any]:
    text = item.raw_content
    stats = [
        {"type": stat_type, "value": match, "context": extract_context(text, match)}
        for stat_type, pattern in STAT_PATTERNS
        for match in pattern.findall(text)
    ]
    return {
        "sports_stats": stats,
        "stat_count": len(stats),
        "has_scores": any(s["type"] == "score" for s in stats),
    }


def identify_teams_players(item: ContentItem) -> dict[str, Any]:
    text = item.raw_content
    teams = _unique(m for p in TEAM_PATTERNS for m in p.findall(text))
    candidates = [
        name for name in PLAYER_PATTERN.findall(text)
        if not NON_PLAYER_PREFIX.match(name)
    ][:MAX_PLAYERS]
    players = _unique(candidates)
    return {
        "teams": teams,
        "players": players,
        "team_count": len(teams),
        "player_count": len(players),
    }


# ---------------------------------------------------------------------------
# 3D-Druck
# ---------------------------------------------------------------------------

_LAYER_HEIGHT = re.compile(r"layer\s+height[:\s]*(\d+\.?\d*)\s*mm", re.IGNORECASE)
_INFILL = re.compile(r"infill[:\s]*(\d+)%", re.IGNORECASE)
_PRINT_TIME = re.compile(r"print\s+time[:\s]*(\d+)\s*(hours?|hrs?|minutes?|mins?)", re.IGNORECASE)
PRINT_MATERIALS = ("PLA", "ABS", "PETG", "TPU", "ASA")
COMPLETE_SETTINGS = 3

MODEL_TYPES: dict[str, tuple[str, ...]] = {
    "functional": ("bracket", "holder", "organizer", "tool", "repair", "replacement", "mount"),
    "decorative": ("art", "sculpture", "vase", "ornament", "decoration", "display"),
    "miniature": ("miniature", "mini", "tabletop", "d&d", "warhammer", "figure", "character"),
    "toy": ("toy", "game", "puzzle", "fidget", "educational", "children"),
}
MODEL_TYPE_DEFAULT_CONFIDENCE = 0.3

MODEL_FILE_TYPES = ("stl", "obj", "3mf", "ply", "gcode")
_DOWNLOAD_LINK = re.compile(r"https?://\S+\.(?:stl|obj|3mf|ply|gcode)\b", re.IGNORECASE)


def extract_print_settings(item: ContentItem) -> dict[str, Any]:
    text = item.raw_content
    settings: dict[str, str] = {}

    if match := _LAYER_HEIGHT.search(text):
        settings["layer_height"] = f"{match.group(1)}mm"
    if match := _INFILL.search(text):
        settings["infill"] = f"{match.group(1)}%"
    # Bei mehreren Materialien gewinnt das zuletzt gelistete
    for material in PRINT_MATERIALS:
        if word_pattern(material).search(text):
            settings["material"] = material
    if match := _PRINT_TIME.search(text):
        settings["print_time"] = f"{match.group(1)} {match.group(2)}"

    return {
        "print_settings": settings,
        "settings_found": len(settings),
        "has_complete_settings": len(settings) >= COMPLETE_SETTINGS,
    }


def classify_model_type(item: ContentItem) -> dict[str, Any]:
    text = f"{item.title} {item.raw_content}".lower()
    best, best_score = "general", 0
    for model_type, keywords in MODEL_TYPES.items():
        score = sum(1 for k in keywords if k in text)
        if score > best_score:
            best, best_score = model_type, score
    return {
        "model_type": best,
        "confidence": min(1.0, best_score / 3) if best_score else MODEL_TYPE_DEFAULT_CONFIDENCE,
        "keywords_matched": best_score,
    }


def extract_file_info(item: ContentItem) -> dict[str, Any]:
    text = item.raw_content
    files = [
        {"name": name, "type": ext}
        for ext in MODEL_FILE_TYPES
        for name in re.findall(rf"\S+\.{ext}\b", text, re.IGNORECASE)
    ]
    links = _DOWNLOAD_LINK.findall(text)
    return {
        "file_info": {
            "files_mentioned": files,
            "download_links": links,
            "file_count": len(files),
            "has_downloads": bool(links),
        }
    }


# ---------------------------------------------------------------------------
# DIY-Elektronik
# ---------------------------------------------------------------------------

ELECTRONICS_COMPONENTS = (
    "arduino", "raspberry pi", "esp32", "esp8266", "atmega",
    "resistor", "capacitor", "transistor", "led", "sensor",
    "motor", "servo", "stepper", "relay", "switch",
)
DIY_TOOLS = ("soldering iron", "multimeter", "breadboard", "jumper wires", "screwdriver")

_DURATION = re.compile(r"(\d+)\s*(hours?|hrs?|minutes?|mins?|days?)", re.IGNORECASE)

# Reihenfolge = Priorität
DIFFICULTY_RULES = (
    ("beginner", re.compile(r"beginner|easy|simple|basic", re.IGNORECASE)),
    ("advanced", re.compile(r"advanced|expert|complex|difficult", re.IGNORECASE)),
    ("intermediate", re.compile(r"intermediate|medium", re.IGNORECASE)),
)
DIY_PROJECT_RULES = (
    ("electronics", re.compile(r"electronics?|circuit|wiring", re.IGNORECASE)),
    ("woodworking", re.compile(r"woodworking|wood|lumber", re.IGNORECASE)),
    ("3d_printing", re.compile(r"3d print|printer|filament", re.IGNORECASE)),
    ("home_automation", re.compile(r"home|house|automation", re.IGNORECASE)),
)


def extract_diy_project_details(item: ContentItem) -> dict[str, Any]:
    text = item.raw_content
    duration = _DURATION.search(text)
    return {
        "project_details": {
            "difficulty_level": _first_rule(DIFFICULTY_RULES, text, "unknown"),
            "estimated_duration": duration.group(0) if duration else "unknown",
            "tools_required": [t for t in DIY_TOOLS if word_pattern(t).search(text)],
            "project_type": _first_rule(DIY_PROJECT_RULES, text, "general"),
        }
    }


def identify_electronics_components(item: ContentItem) -> dict[str, Any]:
    found = [c for c in ELECTRONICS_COMPONENTS if word_pattern(c).search(item.raw_content)]
    if len(found) > 5:
        complexity = "advanced"
    elif len(found) > 2:
        complexity = "intermediate"
    else:
        complexity = "beginner"
    return {
        "components_identified": found,
        "component_count": len(found),
        "complexity": complexity,
    }


# ---------------------------------------------------------------------------
# Smart Home
# ---------------------------------------------------------------------------

SMART_DEVICES = (
    "smart switch", "smart plug", "smart bulb", "smart lock",
    "thermostat", "camera", "doorbell", "sensor", "hub",
    "alexa", "google home", "home assistant", "zigbee", "z-wave",
)
ECOSYSTEM_RULES = (
    ("Home Assistant", re.compile(r"home assistant|hass", re.IGNORECASE)),
    ("Amazon Alexa", re.compile(r"alexa|echo", re.IGNORECASE)),
    ("Google Home", re.compile(r"google home|nest", re.IGNORECASE)),
    ("Apple HomeKit", re.compile(r"apple homekit", re.IGNORECASE)),
)
AUTOMATION_TRIGGERS = ("when", "if", "trigger", "motion detected", "door opens")
AUTOMATION_ACTIONS = ("turn on", "turn off", "set", "notify", "send")
MAX_AUTOMATION_RULES = 5


def extract_smart_devices(item: ContentItem) -> dict[str, Any]:
    text = item.raw_content
    found = [d for d in SMART_DEVICES if word_pattern(d).search(text)]
    return {
        "smart_devices": found,
        "device_count": len(found),
        "ecosystem": _first_rule(ECOSYSTEM_RULES, text, "unknown"),
    }


def extract_automation_logic(item: ContentItem) -> dict[str, Any]:
    text = item.raw_content
    rules = [
        match
        for trigger in AUTOMATION_TRIGGERS
        for action in AUTOMATION_ACTIONS
        for match in re.findall(
            rf"{re.escape(trigger)}[^.]+{re.escape(action)}", text, re.IGNORECASE,
        )
    ]
    return {
        "automation_rules": rules[:MAX_AUTOMATION_RULES],
        "rule_count": len(rules),
        "has_automations": bool(rules),
    }


# ---------------------------------------------------------------------------
# Helfer
# ---------------------------------------------------------------------------

def _first_rule(rules: tuple[tuple[str, re.Pattern[str]], ...], text: str, default: str) -> str:
    for label, pattern in rules:
        if pattern.search(text):
            return label
    return default


def _unique(values: Any) -> list[str]:
    """Duplikate entfernen, Reihenfolge beibehalten."""
    return list(dict.fromkeys(values))
