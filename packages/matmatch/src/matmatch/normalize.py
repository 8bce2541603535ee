"""Material name normalization."""

from __future__ import annotations

import re
import unicodedata

from matmatch.config import NormalizationConfig, SearchConfig

_WHITESPACE = re.compile(r"\s+")
# A comma with a digit on both sides is a decimal separator (2,5)
_LOOSE_COMMA = re.compile(r"(?<!\d),|,(?!\d)")

_DELETE_TABLES: dict[str, dict[int, None]] = {}


def _delete_table(chars: str) -> dict[int, None]:
    table = _DELETE_TABLES.get(chars)
    if table is None:
        table = {ord(c): None for c in chars}
        _DELETE_TABLES[chars] = table
    return table


def normalize(s: str | None, config: SearchConfig | NormalizationConfig | None = None) -> str:
    """Canonicalize a raw name or query for comparison.

    Lowercases, folds ``ё`` to ``е``, deletes punctuation that carries no
    discriminative value and collapses whitespace. Hyphens, digits and
    dimension separators survive. Never fails; empty input yields ``""``.
    """
    if not s:
        return ""
    if isinstance(config, SearchConfig):
        config = config.normalization
    elif config is None:
        config = NormalizationConfig()

    # 1. Unicode normalize (NFKC) and casefold
    text = unicodedata.normalize("NFKC", str(s)).casefold()

    # 2. Transliteration tolerance
    if config.fold_yo:
        text = text.replace("ё", "е")

    # 3. Delete non-discriminative punctuation (deleted, not spaced, so a
    #    token normalizes the same alone or inside a full name)
    chars = config.strip_chars
    if "," in chars:
        text = _LOOSE_COMMA.sub("", text)
        chars = chars.replace(",", "")
    text = text.translate(_delete_table(chars))

    # 4. Collapse whitespace
    return _WHITESPACE.sub(" ", text).strip()


def words(normalized: str) -> list[str]:
    """Split normalized text into query words."""
    return normalized.split(" ") if normalized else []
