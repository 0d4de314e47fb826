"""
Word list table parsing
"""

import logging

from .core.models import Card

logger = logging.getLogger(__name__)

# Header names used by the word list files
COLUMN_WORD = "German Word"
COLUMN_PRONUNCIATION = "Bangla Pronunciation"
COLUMN_TRANSLATION_PRIMARY = "Bangla Meaning"
COLUMN_TRANSLATION_SECONDARY = "English Meaning"
COLUMN_EXAMPLE = "German sentence"


def split_row(line: str, delimiter: str = ",", quote: str = '"') -> list[str]:
    """
    Split one line into trimmed fields

    A quote character toggles quoted mode, inside which the delimiter is
    kept literally. Quote characters themselves are never part of a field.
    """
    values = []
    current = []
    in_quotes = False

    for char in line:
        if char == quote:
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    values.append("".join(current).strip())

    return values


def parse_table(text: str, delimiter: str = ",", quote: str = '"') -> list[dict[str, str]]:
    """
    Parse delimited text into a list of row dicts keyed by header name

    Rows whose field count differs from the header are dropped.
    """
    if not text:
        return []

    lines = text.strip().splitlines()
    if len(lines) < 2:
        return []

    headers = [header.strip() for header in lines[0].split(delimiter)]
    rows = []
    dropped = 0

    for raw_line in lines[1:]:
        line = raw_line.strip()
        if not line:
            continue

        values = split_row(line, delimiter, quote)
        if len(values) != len(headers):
            dropped += 1
            continue

        rows.append(dict(zip(headers, values)))

    if dropped:
        logger.debug(f"Dropped {dropped} rows with mismatched field count")

    return rows


def row_to_card(row: dict[str, str]) -> Card:
    """Map a parsed row onto a Card"""
    return Card(
        word=row.get(COLUMN_WORD, "") or "",
        pronunciation=row.get(COLUMN_PRONUNCIATION, "") or "",
        translation_primary=row.get(COLUMN_TRANSLATION_PRIMARY, "") or "",
        translation_secondary=row.get(COLUMN_TRANSLATION_SECONDARY, "") or "",
        example_sentence=row.get(COLUMN_EXAMPLE, "") or "",
    )


def parse_cards(text: str) -> list[Card]:
    """Parse word list text into cards, skipping rows without a word"""
    return [
        card
        for card in (row_to_card(row) for row in parse_table(text))
        if card.word.strip()
    ]
