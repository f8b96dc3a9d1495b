"""Search key normalization for titles and platform names.

A search key is the comparison-ready form of a title. Two titles that only
differ by case, punctuation, diacritics, bracketed tags ("(Europe)",
"[!]", "(Rev 1)") or a trailing edition suffix produce the same key, which
is what lets a library title match a record in the games database.
"""

import re
import unicodedata

# Matches (content) or [content]
BRACKETED_TAG_PATTERN = re.compile(r"[\(\[][^\)\]]*[\)\]]")

EDITION_WORDS = (
    "special",
    "limited",
    "collector's",
    "collectors",
    "deluxe",
    "definitive",
    "complete",
    "game of the year",
    "goty",
    "anniversary",
    "gold",
    "premium",
    "standard",
)

# "Game - Deluxe Edition", "Game: GOTY Edition", "Game Special Edition"
EDITION_SUFFIX_PATTERN = re.compile(
    r"\s*[-:]?\s*\b(?:" + "|".join(re.escape(w) for w in EDITION_WORDS) + r")\s+edition\s*$"
)

# "Legend of Zelda, The" -> "The Legend of Zelda"
TRAILING_ARTICLE_PATTERN = re.compile(r"^(.*?),\s*the\s*$")

NON_ALPHANUMERIC_PATTERN = re.compile(r"[^a-z0-9]")


def _strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def normalize(text: str | None) -> str:
    """Normalize a title (or platform name) into a search key.

    Args:
        text: Free text, e.g. "Pokémon Red (USA, Europe) [!]"

    Returns:
        Lowercase ASCII alphanumeric key, e.g. "pokemonred". Empty string
        for empty input.
    """
    if not text:
        return ""

    key = _strip_diacritics(text).lower()
    key = BRACKETED_TAG_PATTERN.sub(" ", key)
    key = key.strip()
    # A title that is nothing but an edition name keeps it
    key = EDITION_SUFFIX_PATTERN.sub("", key) or key
    key = TRAILING_ARTICLE_PATTERN.sub(r"the \1", key)
    key = key.replace("&", " and ")
    return NON_ALPHANUMERIC_PATTERN.sub("", key)
