"""
Word extraction and card display helpers
"""

import logging
import unicodedata
from collections.abc import Iterable
from urllib.parse import quote

from .core.models import ARTICLE_PATTERN, Card

logger = logging.getLogger(__name__)

DICT_CC_URL = "https://www.dict.cc/?s={word}"
WIKTIONARY_URL = "https://en.wiktionary.org/wiki/{word}#German"
TTS_URL = "https://translate.google.com/translate_tts?ie=UTF-8&tl={lang}&client=tw-ob&q={word}"
GOOGLE_TRANSLATE_URL = "https://translate.google.com/?sl={source}&tl={target}&text={word}&op=translate"


def _is_punctuation_or_symbol(char: str) -> bool:
    # Unicode categories P* (punctuation) and S* (symbols)
    return unicodedata.category(char)[0] in ("P", "S")


def strip_punctuation(word: str) -> str:
    """Remove punctuation and symbols from both ends, keeping umlauts and ß"""
    start, end = 0, len(word)
    while start < end and _is_punctuation_or_symbol(word[start]):
        start += 1
    while end > start and _is_punctuation_or_symbol(word[end - 1]):
        end -= 1
    return word[start:end]


def extract_words(text: str | None) -> list[str]:
    """
    Extract unique words from free text

    Args:
        text: Any text, e.g. a pasted paragraph or a word list page

    Returns:
        Words in order of first appearance, without surrounding punctuation
    """
    if not text or not text.strip():
        return []

    words = (strip_punctuation(token) for token in text.split())
    unique_words = list(dict.fromkeys(word for word in words if word))

    logger.debug(f"Extracted {len(unique_words)} unique words from text of {len(text)} characters")
    return unique_words


def strip_article(word: str) -> str:
    """Drop a leading der/die/das; the full word is kept if nothing else remains"""
    stripped = ARTICLE_PATTERN.sub("", word or "").strip()
    return stripped or word


def matches_custom_words(card: Card, words: Iterable[str]) -> bool:
    """
    Check whether a card belongs to a user's custom word list

    A card matches when its article-free word equals a requested word, or
    its full word contains it, both ignoring case.
    """
    bare = ARTICLE_PATTERN.sub("", card.word).strip().lower()
    full = card.word.lower()
    for word in words:
        wanted = word.strip().lower()
        if wanted and (bare == wanted or wanted in full):
            return True
    return False


def dict_cc_url(word: str) -> str:
    return DICT_CC_URL.format(word=quote(strip_article(word), safe=""))


def wiktionary_url(word: str) -> str:
    return WIKTIONARY_URL.format(word=quote(strip_article(word), safe=""))


def tts_url(word: str, lang: str = "de") -> str:
    return TTS_URL.format(lang=lang, word=quote(strip_article(word), safe=""))


def google_translate_url(word: str, source: str = "de", target: str = "bn") -> str:
    return GOOGLE_TRANSLATE_URL.format(source=source, target=target, word=quote(word, safe=""))


def quick_links(word: str) -> dict[str, str]:
    """Dictionary, Wiktionary and pronunciation links for a card word"""
    return {
        "dict.cc": dict_cc_url(word),
        "Wiktionary": wiktionary_url(word),
        "Audio": tts_url(word),
    }
