"""Blocking predicates: cheap pre-filters run before full pair scoring.

A blocker takes two entities and returns True when the pair is worth
scoring. The candidate finder accepts any callable with that shape, so a
sorted-neighbourhood or phonetic-key scheme can replace these without
touching the scorer.
"""

from collections.abc import Callable

from unidecode import unidecode

from kg_resolve.graph.models import Entity
from kg_resolve.resolve.similarity import levenshtein_distance

Blocker = Callable[[Entity, Entity], bool]

PREFIX_LENGTH = 3
MAX_PREFIX_DISTANCE = 2


def _prefixes_compatible(prefix_a: str, prefix_b: str) -> bool:
    if prefix_a == prefix_b:
        return True
    return levenshtein_distance(prefix_a, prefix_b) <= MAX_PREFIX_DISTANCE


def prefix_blocker(entity_a: Entity, entity_b: Entity) -> bool:
    """Keep the pair unless the 3-char label prefixes differ by more than 2 edits."""
    prefix_a = entity_a.label.lower()[:PREFIX_LENGTH]
    prefix_b = entity_b.label.lower()[:PREFIX_LENGTH]
    return _prefixes_compatible(prefix_a, prefix_b)


def _ascii_key(label: str) -> str:
    """Transliterate to ASCII, lowercase, keep only letters and digits."""
    return "".join(c for c in unidecode(label).lower() if c.isalnum())


def ascii_prefix_blocker(entity_a: Entity, entity_b: Entity) -> bool:
    """Prefix blocking on transliterated labels ("Émile" and "Emile" share a block)."""
    prefix_a = _ascii_key(entity_a.label)[:PREFIX_LENGTH]
    prefix_b = _ascii_key(entity_b.label)[:PREFIX_LENGTH]
    return _prefixes_compatible(prefix_a, prefix_b)


BLOCKERS: dict[str, Blocker] = {
    "prefix": prefix_blocker,
    "ascii_prefix": ascii_prefix_blocker,
}


def get_blocker(name: str) -> Blocker:
    """Look up a bundled blocker by name."""
    try:
        return BLOCKERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown blocker: {name!r}. Choose from: {', '.join(sorted(BLOCKERS))}"
        ) from None
