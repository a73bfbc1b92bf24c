"""Matching logic and its fixed vocabularies."""

from __future__ import annotations

import functools
import pathlib
from dataclasses import dataclass

import yaml

VOCABULARY_PATH = pathlib.Path(__file__).with_name("vocabulary.yml")


@dataclass(slots=True, frozen=True)
class Vocabulary:
    descriptors: frozenset[str]
    colors: frozenset[str]
    sizes: frozenset[str]


@functools.lru_cache(maxsize=None)
def load_vocabulary(path: pathlib.Path = VOCABULARY_PATH) -> Vocabulary:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    colors = {str(word).lower() for word in data.get("colors", [])}
    # hyphenated colors also match their concatenated spelling
    colors |= {word.replace("-", "") for word in colors}
    return Vocabulary(
        descriptors=frozenset(str(word).lower() for word in data.get("descriptors", [])),
        colors=frozenset(colors),
        sizes=frozenset(str(word).lower() for word in data.get("sizes", [])),
    )
