"""dailies – KI-gestützte Inhaltsklassifizierung mit Action-Pipeline.

Erfasste Inhalte (Artikel, Videos, Posts) werden über mehrere KI-Provider
klassifiziert, auf eine kanonische Kategorie aufgelöst und anschließend
durch die kategoriespezifische Action-Kette verarbeitet.
"""

__version__ = "0.1.0"
