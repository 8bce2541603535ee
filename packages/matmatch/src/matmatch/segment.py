"""Typed segmentation of material names and queries."""

from __future__ import annotations

import re

from matmatch.config import NormalizationConfig, SearchConfig
from matmatch.normalize import normalize
from matmatch.types import Segment, SegmentKind

OPEN_QUOTES = "\"'«„“‘"
CLOSE_QUOTES = "\"'»“”’"
EDGE_PUNCT = ".,;:!?()[]{}"

_NUM = r"\d+(?:[.,]\d+)?"

DIMENSION_TOKEN = re.compile(
    rf"{_NUM}(?:[xх×*]{_NUM})+"          # 100x50, 1200х600х50
    rf"|{_NUM}(?:мм|см|mm|cm|м|m)"       # 50мм, 2,5м
    r"|\d+,\d+"                           # 0,75
    rf"|(?:dn|ду|pn|ру|ø){_NUM}",         # DN32, Ду25, PN16
    re.IGNORECASE,
)

# Letters and digits mixed in one cluster, hyphen/slash/dot separated parts allowed
MIXED_ARTICLE = re.compile(r"(?=.*\d)(?=.*[^\W\d_])[^\W_]+(?:[-_/.][^\W_]+)*")
# Uppercase code joined by hyphens: BVR-R, ПВ-ЗЛ
UPPER_CODE = re.compile(r"[A-ZА-ЯЁ0-9]*[A-ZА-ЯЁ][A-ZА-ЯЁ0-9]*(?:[-_][A-ZА-ЯЁ0-9]+)+")

PLAIN_WORD = re.compile(r"[^\W\d_]+(?:-[^\W\d_]+)*")


def _ends_quote(inner: str) -> bool:
    return bool(inner) and inner[-1] in CLOSE_QUOTES


def _is_dimension(core: str) -> bool:
    return DIMENSION_TOKEN.fullmatch(core) is not None


def _is_article(core: str) -> bool:
    return MIXED_ARTICLE.fullmatch(core) is not None or UPPER_CODE.fullmatch(core) is not None


def _is_upper_brand(core: str) -> bool:
    letters = [ch for ch in core if ch.isalpha()]
    return len(letters) >= 2 and core.isupper()


def _is_capitalized(core: str) -> bool:
    return len(core) >= 2 and core[0].isupper() and not core[1:].isupper()


def segment(
    s: str | None,
    config: SearchConfig | NormalizationConfig | None = None,
) -> list[Segment]:
    """Split a string into typed segments.

    Works on the original text, since case separates brands and articles
    from ordinary words. The same rules apply to queries and candidates.
    """
    if not s:
        return []

    segments: list[Segment] = []
    tokens = s.split()
    in_base = True
    in_quote = False

    for i, token in enumerate(tokens):
        # Quoted names ("Технониколь", «Ридан Про») are brands; quotes may sit
        # inside edge punctuation: ("Технониколь"), «Ридан Про»,
        inner = token.strip(EDGE_PUNCT)
        if in_quote:
            quoted = True
            if _ends_quote(inner):
                in_quote = False
        elif inner[:1] and inner[0] in OPEN_QUOTES:
            quoted = True
            # A quote left open runs only as far as a later closing quote
            if not (len(inner) > 1 and _ends_quote(inner)):
                in_quote = any(_ends_quote(t.strip(EDGE_PUNCT)) for t in tokens[i + 1:])
        else:
            quoted = False

        core = token.strip(OPEN_QUOTES + CLOSE_QUOTES + EDGE_PUNCT)
        if not core:
            continue

        kind: SegmentKind
        if _is_dimension(core):
            kind = "dimension"
        elif quoted:
            kind = "brand"
        elif _is_article(core):
            kind = "article"
        elif _is_upper_brand(core):
            kind = "brand"
        elif in_base and PLAIN_WORD.fullmatch(core):
            kind = "base"
        elif PLAIN_WORD.fullmatch(core) and _is_capitalized(core):
            kind = "brand"
        else:
            kind = "free"

        if kind != "base":
            in_base = False

        norm = normalize(core, config)
        if norm:
            segments.append(Segment(text=core, kind=kind, norm=norm))

    return segments


def unique_segments(segments: list[Segment] | tuple[Segment, ...]) -> list[Segment]:
    """Drop repeated (norm, kind) segments, keeping first occurrence order."""
    seen: set[tuple[str, str]] = set()
    unique: list[Segment] = []
    for seg in segments:
        key = (seg.norm, seg.kind)
        if key in seen:
            continue
        seen.add(key)
        unique.append(seg)
    return unique


def segments_by_kind(segments: list[Segment] | tuple[Segment, ...]) -> dict[str, list[Segment]]:
    """Group segments by kind."""
    grouped: dict[str, list[Segment]] = {}
    for seg in segments:
        grouped.setdefault(seg.kind, []).append(seg)
    return grouped
