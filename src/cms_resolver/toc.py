# -*- coding: utf-8 -*-
"""
Heading outline extraction for on-page navigation.
"""
import re

from bs4 import BeautifulSoup

from .markup import parse_fragment, serialize
from .references import ContentOutlineEntry

OUTLINE_LEVELS = ("h2", "h3")
WHITESPACE_PATTERN = re.compile(r"\s+")
NON_WORD_PATTERN = re.compile(r"[^\w\s-]")
HYPHEN_RUN_PATTERN = re.compile(r"-+")
DEFAULT_ANCHOR = "section"


def anchor_id_for(text: str) -> str:
    """Lowercase, drop non-word characters, whitespace runs to hyphens."""
    anchor = NON_WORD_PATTERN.sub("", (text or "").lower().strip())
    anchor = WHITESPACE_PATTERN.sub("-", anchor)
    anchor = HYPHEN_RUN_PATTERN.sub("-", anchor).strip("-")
    return anchor or DEFAULT_ANCHOR


def _unique(anchor: str, used: set[str]) -> str:
    candidate = anchor
    counter = 2
    while candidate in used:
        candidate = f"{anchor}-{counter}"
        counter += 1
    used.add(candidate)
    return candidate


def build_outline(soup: BeautifulSoup) -> list[ContentOutlineEntry]:
    """
    Assign anchor ids to h2/h3 headings in place and return the outline.

    Headings keep an id they already carry. Generated ids that collide get
    a numeric suffix (``causes``, ``causes-2``). Headings without visible
    text are skipped.
    """
    headings = soup.find_all(OUTLINE_LEVELS)
    used = {h["id"] for h in soup.find_all(id=True) if isinstance(h.get("id"), str)}

    outline = []
    for heading in headings:
        text = WHITESPACE_PATTERN.sub(" ", heading.get_text(" ", strip=True)).strip()
        if not text:
            continue
        existing = (heading.get("id") or "").strip()
        if existing:
            anchor = existing
        else:
            anchor = _unique(anchor_id_for(text), used)
            heading["id"] = anchor
        outline.append(ContentOutlineEntry(level=int(heading.name[1]), text=text, anchor_id=anchor))
    return outline


def extract_outline(html: str) -> tuple[str, list[ContentOutlineEntry]]:
    """Outline of a resolved body plus the body with heading ids injected."""
    if not html:
        return "", []
    soup = parse_fragment(html)
    outline = build_outline(soup)
    return serialize(soup), outline
