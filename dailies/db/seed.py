"""Standard-Katalog für eine leere Datenbank.

Kategorien, Actions, Zuordnungen, Matcher und Aliase werden über Namen
verknüpft; Database.seed_defaults() löst sie in IDs auf.
"""

from __future__ import annotations

FALLBACK_CATEGORY = "Uncategorized"
POLITICS_CATEGORY = "US_Politics_News"

# (Name, Beschreibung, Priorität, Fallback)
CATEGORIES: list[tuple[str, str, int, bool]] = [
    (POLITICS_CATEGORY, "United States political news, analysis, and commentary", 1, False),
    ("Technology", "General technology news, trends, and innovations", 2, False),
    ("Software Development", "Programming, coding, development tools, and software engineering", 3, False),
    ("DIY Electronics", "Electronics projects, hobby electronics, hacking, and maker content", 4, False),
    ("Homelab DevOps", "Self-hosting, homelab setups, DevOps practices, and infrastructure", 5, False),
    ("3D Printing", "3D printing models, techniques, hardware, and community content", 6, False),
    ("Smart Home", "Home automation, Home Assistant, ESPHome, IoT devices", 7, False),
    ("Sports", "Sports news, analysis, scores, and commentary", 8, False),
    (FALLBACK_CATEGORY, "Fallback category for content that cannot be automatically classified", 99, True),
]

# (Name, Beschreibung, Handler)
ACTIONS: list[tuple[str, str, str]] = [
    ("analyze_bias", "Analyze political bias and detect loaded language", "political.analyzeBias"),
    ("score_quality", "Score content quality on factual accuracy and sourcing", "political.scoreQuality"),
    ("detect_loaded_language", "Identify emotionally charged or manipulative language", "political.detectLoadedLanguage"),
    ("generate_summaries", "Generate executive and detailed summaries", "political.generateSummaries"),
    ("assess_credibility", "Assess source credibility and reputation", "political.assessCredibility"),
    ("analyze_political_content", "Run all political analyses concurrently", "political.analyzeContent"),
    ("extract_tech_trends", "Extract technology trends and innovations mentioned", "tech.extractTrends"),
    ("analyze_technical_depth", "Assess technical complexity and depth of content", "tech.analyzeTechnicalDepth"),
    ("extract_tools_technologies", "Identify tools, frameworks, and technologies mentioned", "tech.extractToolsTech"),
    ("extract_sports_stats", "Extract game statistics, scores, and player data", "sports.extractStats"),
    ("identify_teams_players", "Identify teams, players, and key figures", "sports.identifyTeamsPlayers"),
    ("extract_print_settings", "Extract 3D printing parameters and model metadata", "printing.extractSettings"),
    ("classify_model_type", "Classify 3D model type (functional, decorative, etc.)", "printing.classifyModel"),
    ("extract_file_info", "Extract download links and file information", "printing.extractFileInfo"),
    ("extract_project_details", "Extract DIY project details and components", "diy.extractProjectDetails"),
    ("identify_components", "Identify electronic components and tools needed", "diy.identifyComponents"),
    ("extract_smart_devices", "Identify smart home devices and integrations", "smarthome.extractDevices"),
    ("extract_automation_logic", "Extract automation rules and logic", "smarthome.extractAutomation"),
    ("summarize", "Generate basic summary and extract key points", "general.summarize"),
    ("extract_keywords", "Extract important keywords and topics", "general.extractKeywords"),
    ("calculate_reading_time", "Calculate estimated reading time", "general.calculateReadingTime"),
]

# Kategorie → Actions in Ausführungsreihenfolge
CATEGORY_ACTIONS: dict[str, list[str]] = {
    POLITICS_CATEGORY: [
        "analyze_bias", "score_quality", "detect_loaded_language",
        "assess_credibility", "generate_summaries",
    ],
    "Technology": [
        "extract_tech_trends", "analyze_technical_depth", "extract_tools_technologies", "summarize",
    ],
    "Software Development": ["extract_tools_technologies", "analyze_technical_depth", "summarize"],
    "DIY Electronics": ["extract_project_details", "identify_components", "summarize"],
    "Homelab DevOps": ["extract_tools_technologies", "analyze_technical_depth", "summarize"],
    "3D Printing": ["extract_print_settings", "classify_model_type", "extract_file_info", "summarize"],
    "Smart Home": ["extract_smart_devices", "extract_automation_logic", "summarize"],
    "Sports": ["extract_sports_stats", "identify_teams_players", "summarize"],
    FALLBACK_CATEGORY: ["summarize", "extract_keywords", "calculate_reading_time"],
}

# Kategorie → Domain-Matcher
DOMAIN_MATCHERS: dict[str, list[str]] = {
    POLITICS_CATEGORY: ["politico.com", "thehill.com", "rollcall.com"],
    "3D Printing": [
        "thingiverse.com", "printables.com", "myminifactory.com", "cults3d.com",
        "thangs.com", "prusaprinters.org", "yeggi.com",
    ],
    "Technology": ["techcrunch.com", "arstechnica.com", "theverge.com", "wired.com"],
    "Software Development": [
        "github.com", "stackoverflow.com", "dev.to", "medium.com", "hackernews.ycombinator.com",
    ],
    "Smart Home": ["home-assistant.io", "esphome.io", "community.home-assistant.io"],
    "DIY Electronics": ["instructables.com", "hackaday.com", "adafruit.com", "sparkfun.com"],
}

# (Alias, Kategorie, Schwelle)
ALIASES: list[tuple[str, str, float]] = [
    ("US Politics", POLITICS_CATEGORY, 0.70),
    ("Politics", POLITICS_CATEGORY, 0.70),
    ("American Politics", POLITICS_CATEGORY, 0.70),
    ("Tech", "Technology", 0.70),
    ("Programming", "Software Development", 0.70),
    ("Electronics", "DIY Electronics", 0.70),
    ("Homelab", "Homelab DevOps", 0.70),
    ("DevOps", "Homelab DevOps", 0.70),
    ("3D Print", "3D Printing", 0.70),
    ("Home Automation", "Smart Home", 0.70),
    ("Sport", "Sports", 0.70),
]
