# -*- coding: utf-8 -*-
"""
Fragment parsing and serialization helpers.

Rich-text fields are fragments, not documents, so they are parsed with the
``html.parser`` builder: it does not wrap the fragment in ``<html><body>``.
"""
from bs4 import BeautifulSoup


def parse_fragment(html: str) -> BeautifulSoup:
    """Parse an HTML fragment into a tree."""
    return BeautifulSoup(html or "", "html.parser")


def serialize(soup: BeautifulSoup) -> str:
    """Serialize a parsed fragment back to HTML."""
    return soup.decode()


def merge_tokens(existing, *tokens: str) -> str:
    """Merge space-separated tokens (e.g. rel values) without duplicates."""
    if isinstance(existing, (list, tuple)):
        current = [t for t in existing if t]
    else:
        current = (existing or "").split()
    for token in tokens:
        if token not in current:
            current.append(token)
    return " ".join(current)
