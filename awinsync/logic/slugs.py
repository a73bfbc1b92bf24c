"""Slug normalization and comparison keys."""

from __future__ import annotations

import re
import unicodedata

from awinsync.logic import Vocabulary, load_vocabulary

NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
LENGTH_RE = re.compile(r"^\d+(cm|mm|in|inch)?$")


def slugify(value: object) -> str:
    if value is None:
        return ""
    text = unicodedata.normalize("NFKD", str(value).lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return NON_ALNUM_RE.sub("-", text).strip("-")


def comparison_key(slug: str, vocabulary: Vocabulary | None = None) -> str:
    """Coarsen ``slug`` by dropping descriptor, color, size and length tokens.

    Falls back to ``slug`` itself when every token is dropped.
    """
    if not slug:
        return ""
    vocab = vocabulary or load_vocabulary()
    tokens = [token for token in slug.split("-") if token]
    kept = [token for token in tokens if not _is_noise(token, vocab)]
    return "-".join(kept) if kept else slug


def _is_noise(token: str, vocab: Vocabulary) -> bool:
    if token in vocab.descriptors or token in vocab.colors:
        return True
    if LENGTH_RE.match(token):
        return True
    return token in vocab.sizes
