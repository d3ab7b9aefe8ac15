"""String similarity metrics for entity matching.

Pure functions, no state:
- Levenshtein edit distance (jellyfish)
- Jaro-Winkler similarity: jellyfish Jaro plus an unconditional
  4-character prefix boost
- A blended name similarity (70% Jaro-Winkler, 30% normalized Levenshtein)
- Token-set Jaccard similarity for longer free text
"""

import re

import jellyfish

# Winkler prefix boost
_PREFIX_SCALE = 0.1
_MAX_PREFIX = 4

# Blend used for names: Jaro-Winkler rewards shared prefixes, Levenshtein
# penalizes overall length differences.
_JARO_WINKLER_WEIGHT = 0.7
_LEVENSHTEIN_WEIGHT = 0.3

_PUNCTUATION = re.compile(r"[^\w\s]")
_MIN_TOKEN_LENGTH = 3


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance: insertions, deletions, substitutions cost 1."""
    return jellyfish.levenshtein_distance(a, b)


def jaro_winkler(a: str, b: str) -> float:
    """Jaro-Winkler similarity in [0, 1].

    The prefix boost applies at every Jaro score, unlike
    ``jellyfish.jaro_winkler_similarity`` which only boosts above 0.7.

    Args:
        a: First string (compared as-is, no normalization)
        b: Second string

    Returns:
        1.0 for identical strings, 0.0 if either is empty or nothing matches
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    jaro = jellyfish.jaro_similarity(a, b)
    if jaro == 0.0:
        return 0.0

    prefix = 0
    for i in range(min(_MAX_PREFIX, len(a), len(b))):
        if a[i] != b[i]:
            break
        prefix += 1

    return jaro + prefix * _PREFIX_SCALE * (1 - jaro)


def string_similarity(a: str, b: str) -> float:
    """Case-insensitive name similarity in [0, 1].

    Returns 0.0 when either input is empty, 1.0 when both normalize to the
    same string, otherwise a 70/30 blend of Jaro-Winkler and normalized
    Levenshtein similarity.
    """
    if not a or not b:
        return 0.0

    s1 = a.casefold().strip()
    s2 = b.casefold().strip()
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    # Greedy Jaro matching depends on argument order; fix the order so the
    # score is symmetric.
    s1, s2 = sorted((s1, s2))

    jw = jaro_winkler(s1, s2)
    max_len = max(len(s1), len(s2))
    lev = 1 - levenshtein_distance(s1, s2) / max_len

    return jw * _JARO_WINKLER_WEIGHT + lev * _LEVENSHTEIN_WEIGHT


def _tokenize(text: str) -> set[str]:
    """Lowercase, replace punctuation with spaces, drop tokens shorter than 3."""
    cleaned = _PUNCTUATION.sub(" ", text.lower())
    return {token for token in cleaned.split() if len(token) >= _MIN_TOKEN_LENGTH}


def token_similarity(a: str, b: str) -> float:
    """Jaccard index of the token sets of two texts (0 if either is empty)."""
    if not a or not b:
        return 0.0

    tokens_a = _tokenize(a)
    tokens_b = _tokenize(b)
    if not tokens_a or not tokens_b:
        return 0.0

    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)
